from __future__ import annotations

import asyncio
import logging
from copy import deepcopy
from typing import Any

from core.errors import AppException, store_unavailable
from core.store.provider import EntityStore, StoreTransaction, TransactionCallback, T
from core.store.types import EntityStoreBackend

logger = logging.getLogger(__name__)

_DELETED = None


class _MemoryTransaction(StoreTransaction):
    """Stages writes over a committed snapshot until the store applies them."""

    def __init__(self, places: dict[str, dict], users: dict[str, dict]) -> None:
        self._places = places
        self._users = users
        self.staged_places: dict[str, dict | None] = {}
        self.staged_users: dict[str, dict] = {}

    def _current_place(self, place_id: str) -> dict | None:
        if place_id in self.staged_places:
            return self.staged_places[place_id]
        return self._places.get(place_id)

    def _current_user(self, user_id: str) -> dict | None:
        if user_id in self.staged_users:
            return self.staged_users[user_id]
        return self._users.get(user_id)

    async def find_place(self, place_id: str) -> dict[str, Any] | None:
        return deepcopy(self._current_place(place_id))

    async def find_user(self, user_id: str) -> dict[str, Any] | None:
        return deepcopy(self._current_user(user_id))

    async def insert_place(self, document: dict[str, Any]) -> None:
        place_id = document["_id"]
        if self._current_place(place_id) is not None:
            raise store_unavailable("insert_place", f"duplicate place id {place_id}")
        self.staged_places[place_id] = deepcopy(document)

    async def add_place_to_user(self, user_id: str, place_id: str) -> bool:
        user = self._current_user(user_id)
        if user is None:
            return False
        updated = deepcopy(user)
        places = updated.setdefault("places", [])
        if place_id not in places:
            places.append(place_id)
        self.staged_users[user_id] = updated
        return True

    async def delete_place(self, place_id: str) -> bool:
        if self._current_place(place_id) is None:
            return False
        self.staged_places[place_id] = _DELETED
        return True

    async def remove_place_from_user(self, user_id: str, place_id: str) -> bool:
        user = self._current_user(user_id)
        if user is None:
            return False
        updated = deepcopy(user)
        updated["places"] = [item for item in updated.get("places", []) if item != place_id]
        self.staged_users[user_id] = updated
        return True

    async def image_in_use(self, image: str) -> bool:
        place_ids = set(self._places) | set(self.staged_places)
        for place_id in place_ids:
            place = self._current_place(place_id)
            if place is not None and place.get("image") == image:
                return True
        return False


class MemoryEntityStore(EntityStore):
    """Process-local store for development and tests.

    Transactions are serialized by one lock and their writes are swapped in
    together, so no reader ever observes a half-applied transaction.
    """

    backend_name = EntityStoreBackend.MEMORY.value

    def __init__(self) -> None:
        self._places: dict[str, dict] = {}
        self._users: dict[str, dict] = {}
        self._lock = asyncio.Lock()

    async def find_place(self, place_id: str) -> dict[str, Any] | None:
        return deepcopy(self._places.get(place_id))

    async def find_user(self, user_id: str) -> dict[str, Any] | None:
        return deepcopy(self._users.get(user_id))

    async def find_places_by_creator(self, creator_id: str) -> list[dict[str, Any]]:
        return [deepcopy(row) for row in self._places.values() if row.get("creator") == creator_id]

    async def update_place_fields(self, place_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        async with self._lock:
            current = self._places.get(place_id)
            if current is None:
                return None
            updated = {**current, **deepcopy(fields)}
            self._places = {**self._places, place_id: updated}
            return deepcopy(updated)

    async def insert_user(self, document: dict[str, Any]) -> dict[str, Any]:
        async with self._lock:
            user_id = document["_id"]
            if user_id in self._users:
                raise store_unavailable("insert_user", f"duplicate user id {user_id}")
            stored = deepcopy(document)
            stored.setdefault("places", [])
            self._users = {**self._users, user_id: stored}
            return deepcopy(stored)

    async def run_in_transaction(self, fn: TransactionCallback[T]) -> T:
        async with self._lock:
            tx = _MemoryTransaction(self._places, self._users)
            result = await fn(tx)
            try:
                self._commit(tx)
            except AppException:
                raise
            except Exception as err:
                logger.error("In-memory commit failed: %s", err, extra={"operation": "commit"})
                raise store_unavailable("commit", str(err)) from err
            return result

    def _commit(self, tx: _MemoryTransaction) -> None:
        places = dict(self._places)
        for place_id, document in tx.staged_places.items():
            if document is _DELETED:
                places.pop(place_id, None)
            else:
                places[place_id] = document

        users = dict(self._users)
        users.update(tx.staged_users)

        self._places, self._users = places, users

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        return None
