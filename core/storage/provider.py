from __future__ import annotations

from typing import Protocol

from core.storage.types import StoredAsset


class AssetStorageProvider(Protocol):
    backend_name: str

    def save_bytes(
        self,
        *,
        object_key: str,
        payload: bytes,
        content_type: str | None = None,
    ) -> StoredAsset:
        ...

    def release(self, *, object_key: str) -> None:
        ...
