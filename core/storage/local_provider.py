from __future__ import annotations

from pathlib import Path

from core.storage.provider import AssetStorageProvider
from core.storage.types import StorageBackend, StoredAsset


class LocalStorageProvider(AssetStorageProvider):
    backend_name = StorageBackend.LOCAL.value

    def __init__(self, root_dir: str) -> None:
        self._root = Path(root_dir).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def _path_for(self, object_key: str) -> Path:
        file_path = (self._root / object_key).resolve()
        if self._root not in file_path.parents:
            raise ValueError(f"object key escapes storage root: {object_key}")
        return file_path

    def save_bytes(
        self,
        *,
        object_key: str,
        payload: bytes,
        content_type: str | None = None,
    ) -> StoredAsset:
        file_path = self._path_for(object_key)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(payload)
        return StoredAsset(
            object_key=object_key,
            backend=StorageBackend.LOCAL,
            size=file_path.stat().st_size,
            content_type=content_type,
        )

    def release(self, *, object_key: str) -> None:
        file_path = self._path_for(object_key)
        if file_path.exists():
            file_path.unlink()
