from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StorageBackend(str, Enum):
    LOCAL = "local"
    S3 = "s3"


@dataclass(frozen=True)
class StoredAsset:
    object_key: str
    backend: StorageBackend
    size: int
    content_type: str | None = None


def is_external_reference(reference: str) -> bool:
    """Absolute URLs point at assets this service never stored."""
    return reference.startswith(("http://", "https://"))
