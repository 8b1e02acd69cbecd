from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from pymongo import ASCENDING, AsyncMongoClient, ReadPreference, ReturnDocument
from pymongo.errors import PyMongoError
from pymongo.read_concern import ReadConcern
from pymongo.write_concern import WriteConcern

from core.errors import store_unavailable
from core.store.provider import EntityStore, StoreTransaction, TransactionCallback, T
from core.store.types import PLACES_COLLECTION, USERS_COLLECTION, EntityStoreBackend

logger = logging.getLogger(__name__)


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as err:
        logger.error("MongoDB %s failed: %s", operation, err, extra={"operation": operation})
        raise store_unavailable(operation, str(err)) from err


class _MongoTransaction(StoreTransaction):
    def __init__(self, db, session) -> None:
        self._places = db[PLACES_COLLECTION]
        self._users = db[USERS_COLLECTION]
        self._session = session

    async def find_place(self, place_id: str) -> dict[str, Any] | None:
        return await self._places.find_one({"_id": place_id}, session=self._session)

    async def find_user(self, user_id: str) -> dict[str, Any] | None:
        return await self._users.find_one({"_id": user_id}, session=self._session)

    async def insert_place(self, document: dict[str, Any]) -> None:
        await self._places.insert_one(document, session=self._session)

    async def add_place_to_user(self, user_id: str, place_id: str) -> bool:
        result = await self._users.update_one(
            {"_id": user_id},
            {"$addToSet": {"places": place_id}},
            session=self._session,
        )
        return result.matched_count == 1

    async def delete_place(self, place_id: str) -> bool:
        result = await self._places.delete_one({"_id": place_id}, session=self._session)
        return result.deleted_count == 1

    async def remove_place_from_user(self, user_id: str, place_id: str) -> bool:
        result = await self._users.update_one(
            {"_id": user_id},
            {"$pull": {"places": place_id}},
            session=self._session,
        )
        return result.matched_count == 1

    async def image_in_use(self, image: str) -> bool:
        row = await self._places.find_one({"image": image}, {"_id": 1}, session=self._session)
        return row is not None


class MongoEntityStore(EntityStore):
    """MongoDB-backed store. Multi-document transactions need a replica set."""

    backend_name = EntityStoreBackend.MONGODB.value

    def __init__(self, *, client: AsyncMongoClient, db_name: str) -> None:
        self._client = client
        self._db = client[db_name]
        self._indexes_ready = False

    @classmethod
    def from_url(cls, *, mongo_url: str, db_name: str) -> "MongoEntityStore":
        client: AsyncMongoClient = AsyncMongoClient(mongo_url, serverSelectionTimeoutMS=2000)
        return cls(client=client, db_name=db_name)

    async def _ensure_indexes(self) -> None:
        if self._indexes_ready:
            return
        with _translate_errors("create_index"):
            await self._db[PLACES_COLLECTION].create_index(
                [("creator", ASCENDING)],
                name="idx_place_creator",
            )
        self._indexes_ready = True

    async def find_place(self, place_id: str) -> dict[str, Any] | None:
        with _translate_errors("find_place"):
            return await self._db[PLACES_COLLECTION].find_one({"_id": place_id})

    async def find_user(self, user_id: str) -> dict[str, Any] | None:
        with _translate_errors("find_user"):
            return await self._db[USERS_COLLECTION].find_one({"_id": user_id})

    async def find_places_by_creator(self, creator_id: str) -> list[dict[str, Any]]:
        await self._ensure_indexes()
        rows: list[dict[str, Any]] = []
        with _translate_errors("find_places_by_creator"):
            async for row in self._db[PLACES_COLLECTION].find({"creator": creator_id}):
                rows.append(row)
        return rows

    async def update_place_fields(self, place_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        with _translate_errors("update_place"):
            return await self._db[PLACES_COLLECTION].find_one_and_update(
                {"_id": place_id},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )

    async def insert_user(self, document: dict[str, Any]) -> dict[str, Any]:
        payload = {"places": [], **document}
        with _translate_errors("insert_user"):
            await self._db[USERS_COLLECTION].insert_one(payload)
        return payload

    async def run_in_transaction(self, fn: TransactionCallback[T]) -> T:
        async def _callback(session) -> T:
            return await fn(_MongoTransaction(self._db, session))

        await self._ensure_indexes()
        # with_transaction retries write conflicts and aborts on any exception,
        # cancellation included.
        with _translate_errors("transaction"):
            async with self._client.start_session() as session:
                return await session.with_transaction(
                    _callback,
                    read_concern=ReadConcern("snapshot"),
                    write_concern=WriteConcern("majority"),
                    read_preference=ReadPreference.PRIMARY,
                )

    async def ping(self) -> None:
        with _translate_errors("ping"):
            await self._client.admin.command("ping")

    async def close(self) -> None:
        await self._client.close()
