from __future__ import annotations

import asyncio
import os
import tempfile

os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "test-maps-key")
os.environ.setdefault("DB_TYPE", "memory")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("STORAGE_LOCAL_ROOT", tempfile.mkdtemp(prefix="places-uploads-"))
os.environ.setdefault("GEOCODE_CACHE_TTL_SECONDS", "0")

import pytest  # noqa: E402

from core.errors import geocoding_failed  # noqa: E402
from core.storage import AssetStorageManager, StorageBackend, StoredAsset  # noqa: E402
from core.store import EntityStoreManager, MemoryEntityStore  # noqa: E402
from schemas.place import Location  # noqa: E402
from services import geocoding_service  # noqa: E402

EMPIRE_STATE_ADDRESS = "20 W 34th St"
EMPIRE_STATE_LOCATION = Location(lat=40.7484, lng=-73.9857)


class StubResolver:
    def __init__(
        self,
        locations: dict[str, Location] | None = None,
        *,
        error: Exception | None = None,
        delay: float = 0,
        timeout_seconds: float = 1.0,
    ) -> None:
        self.locations = locations or {}
        self.error = error
        self.delay = delay
        self.timeout_seconds = timeout_seconds
        self.calls: list[str] = []

    async def resolve(self, address: str) -> Location:
        self.calls.append(address)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if address not in self.locations:
            raise geocoding_failed(details={"providerStatus": "ZERO_RESULTS"})
        return self.locations[address]


class RecordingAssetProvider:
    backend_name = "recording"

    def __init__(self, *, fail_release: bool = False) -> None:
        self.saved: dict[str, bytes] = {}
        self.released: list[str] = []
        self.fail_release = fail_release

    def save_bytes(self, *, object_key: str, payload: bytes, content_type: str | None = None) -> StoredAsset:
        self.saved[object_key] = payload
        return StoredAsset(
            object_key=object_key,
            backend=StorageBackend.LOCAL,
            size=len(payload),
            content_type=content_type,
        )

    def release(self, *, object_key: str) -> None:
        if self.fail_release:
            raise OSError(f"cannot delete {object_key}")
        self.released.append(object_key)


@pytest.fixture
def memory_store():
    store = MemoryEntityStore()
    EntityStoreManager.configure(store)
    yield store
    EntityStoreManager._instance = None


@pytest.fixture
def asset_provider():
    provider = RecordingAssetProvider()
    AssetStorageManager.configure(provider)
    yield provider
    AssetStorageManager._instance = None


@pytest.fixture
def resolver():
    stub = StubResolver({EMPIRE_STATE_ADDRESS: EMPIRE_STATE_LOCATION})
    geocoding_service.set_geocode_resolver(stub)
    yield stub
    geocoding_service.set_geocode_resolver(None)


def assert_owner_links_consistent(store: MemoryEntityStore) -> None:
    places = store._places
    users = store._users
    for place_id, place in places.items():
        assert place_id in users[place["creator"]]["places"]
    for user_id, user in users.items():
        for place_id in user["places"]:
            assert places[place_id]["creator"] == user_id
