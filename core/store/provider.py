from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol, TypeVar

T = TypeVar("T")


class StoreTransaction(Protocol):
    """Handle passed to a transaction callback.

    Every write made through the handle becomes visible to other readers only
    when the surrounding transaction commits, and is discarded otherwise.
    """

    async def find_place(self, place_id: str) -> dict[str, Any] | None:
        ...

    async def find_user(self, user_id: str) -> dict[str, Any] | None:
        ...

    async def insert_place(self, document: dict[str, Any]) -> None:
        ...

    async def add_place_to_user(self, user_id: str, place_id: str) -> bool:
        """Returns False when the user does not exist."""
        ...

    async def delete_place(self, place_id: str) -> bool:
        """Returns False when the place does not exist."""
        ...

    async def remove_place_from_user(self, user_id: str, place_id: str) -> bool:
        """Returns False when the user does not exist."""
        ...

    async def image_in_use(self, image: str) -> bool:
        """True when any place visible to this transaction references ``image``."""
        ...


TransactionCallback = Callable[[StoreTransaction], Awaitable[T]]


class EntityStore(Protocol):
    backend_name: str

    async def find_place(self, place_id: str) -> dict[str, Any] | None:
        ...

    async def find_user(self, user_id: str) -> dict[str, Any] | None:
        ...

    async def find_places_by_creator(self, creator_id: str) -> list[dict[str, Any]]:
        ...

    async def update_place_fields(self, place_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        ...

    async def insert_user(self, document: dict[str, Any]) -> dict[str, Any]:
        ...

    async def run_in_transaction(self, fn: TransactionCallback[T]) -> T:
        """Run ``fn`` with a transactional handle and commit its writes atomically.

        Exceptions raised by ``fn`` abort the transaction and propagate as-is.
        Failures of the storage layer itself surface as ``STORE_UNAVAILABLE``.
        """
        ...

    async def ping(self) -> None:
        ...

    async def close(self) -> None:
        ...
