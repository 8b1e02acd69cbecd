from __future__ import annotations

from core.errors import not_place_owner
from schemas.place import PlaceOut


def is_place_owner(place: PlaceOut, acting_user_id: str | None) -> bool:
    if not acting_user_id:
        return False
    return place.creator == acting_user_id


def ensure_place_owner(place: PlaceOut, acting_user_id: str | None) -> None:
    if not is_place_owner(place, acting_user_id):
        raise not_place_owner()
