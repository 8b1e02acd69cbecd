from __future__ import annotations

from core.store import get_entity_store
from schemas.place import PlaceOut


async def get_place_by_id(place_id: str) -> PlaceOut | None:
    row = await get_entity_store().find_place(place_id)
    if row is None:
        return None
    return PlaceOut(**row)


async def get_places_by_creator(creator_id: str) -> list[PlaceOut]:
    rows = await get_entity_store().find_places_by_creator(creator_id)
    return [PlaceOut(**row) for row in rows]


async def update_place_fields(place_id: str, update_dict: dict) -> PlaceOut | None:
    if not update_dict:
        return await get_place_by_id(place_id)
    row = await get_entity_store().update_place_fields(place_id, update_dict)
    if row is None:
        return None
    return PlaceOut(**row)
