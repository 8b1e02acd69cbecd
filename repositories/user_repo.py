from __future__ import annotations

from core.store import get_entity_store
from schemas.user import UserCreate, UserOut


async def create_user(payload: UserCreate) -> UserOut:
    stored = await get_entity_store().insert_user(payload.to_document())
    return UserOut(**stored)


async def get_user_by_id(user_id: str) -> UserOut | None:
    row = await get_entity_store().find_user(user_id)
    if row is None:
        return None
    return UserOut(**row)
