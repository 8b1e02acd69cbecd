from __future__ import annotations

from enum import Enum


class EntityStoreBackend(str, Enum):
    MEMORY = "memory"
    MONGODB = "mongodb"


PLACES_COLLECTION = "places"
USERS_COLLECTION = "users"
