from core.storage.manager import AssetStorageManager
from core.storage.types import StorageBackend, StoredAsset, is_external_reference

__all__ = [
    "AssetStorageManager",
    "StorageBackend",
    "StoredAsset",
    "is_external_reference",
]
