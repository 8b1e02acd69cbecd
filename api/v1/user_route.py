from fastapi import APIRouter, Path, Request

from core.response_envelope import document_created, document_response
from schemas.user import UserCreateRequest
from services.user_service import add_user, retrieve_user_by_id

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("")
@document_created(message="User created successfully")
async def register_user(request: Request, payload: UserCreateRequest):
    return await add_user(user_data=payload)


@router.get("/{user_id}")
@document_response(message="User fetched successfully")
async def fetch_user(
    request: Request,
    user_id: str = Path(..., description="User id."),
):
    return await retrieve_user_by_id(id=user_id)
