from __future__ import annotations

import boto3

from core.storage.provider import AssetStorageProvider
from core.storage.types import StorageBackend, StoredAsset


class S3StorageProvider(AssetStorageProvider):
    backend_name = StorageBackend.S3.value

    def __init__(self, *, bucket_name: str, region: str | None = None, endpoint_url: str | None = None) -> None:
        self._bucket = bucket_name
        self._client = boto3.client("s3", region_name=region, endpoint_url=endpoint_url)

    def save_bytes(
        self,
        *,
        object_key: str,
        payload: bytes,
        content_type: str | None = None,
    ) -> StoredAsset:
        extra = {"ContentType": content_type} if content_type else {}
        self._client.put_object(Bucket=self._bucket, Key=object_key, Body=payload, **extra)
        return StoredAsset(
            object_key=object_key,
            backend=StorageBackend.S3,
            size=len(payload),
            content_type=content_type,
        )

    def release(self, *, object_key: str) -> None:
        self._client.delete_object(Bucket=self._bucket, Key=object_key)
