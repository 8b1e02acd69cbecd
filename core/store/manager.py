from __future__ import annotations

from threading import Lock

from core.settings import get_settings
from core.store.memory_provider import MemoryEntityStore
from core.store.provider import EntityStore


class EntityStoreManager:
    _instance: "EntityStoreManager | None" = None
    _lock = Lock()

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    @classmethod
    def configure(cls, store: EntityStore) -> "EntityStoreManager":
        with cls._lock:
            cls._instance = cls(store)
            return cls._instance

    @classmethod
    def configure_from_settings(cls) -> "EntityStoreManager":
        settings = get_settings()
        if settings.db_type == "mongodb":
            if not settings.mongo_url or not settings.db_name:
                raise RuntimeError("MONGO_URL and DB_NAME are required when DB_TYPE=mongodb")
            from core.store.mongo_provider import MongoEntityStore

            store: EntityStore = MongoEntityStore.from_url(
                mongo_url=settings.mongo_url,
                db_name=settings.db_name,
            )
        else:
            store = MemoryEntityStore()

        return cls.configure(store)

    @classmethod
    def get_instance(cls) -> "EntityStoreManager":
        if cls._instance is None:
            return cls.configure_from_settings()
        return cls._instance

    @classmethod
    async def shutdown(cls) -> None:
        with cls._lock:
            instance, cls._instance = cls._instance, None
        if instance is not None:
            await instance.store.close()

    @property
    def store(self) -> EntityStore:
        return self._store


def get_entity_store() -> EntityStore:
    return EntityStoreManager.get_instance().store
