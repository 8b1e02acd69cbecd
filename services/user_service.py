from __future__ import annotations

from bson import ObjectId

from core.errors import resource_not_found
from repositories.user_repo import create_user, get_user_by_id
from schemas.user import UserCreate, UserCreateRequest, UserOut


async def add_user(user_data: UserCreateRequest) -> UserOut:
    """Registers a user with an empty place list."""
    return await create_user(UserCreate(id=str(ObjectId()), **user_data.model_dump()))


async def retrieve_user_by_id(id: str) -> UserOut:
    user = await get_user_by_id(id)
    if user is None:
        raise resource_not_found("User", id)
    return user
