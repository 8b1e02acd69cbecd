from core.store.manager import EntityStoreManager, get_entity_store
from core.store.memory_provider import MemoryEntityStore
from core.store.provider import EntityStore, StoreTransaction
from core.store.types import EntityStoreBackend

__all__ = [
    "EntityStore",
    "EntityStoreBackend",
    "EntityStoreManager",
    "MemoryEntityStore",
    "StoreTransaction",
    "get_entity_store",
]
