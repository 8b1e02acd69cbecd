from fastapi import APIRouter, Depends, File, Path, Request, UploadFile

from core.response_envelope import document_created, document_deleted, document_response
from schemas.place import PlaceCreateRequest, PlaceImageOut, PlaceUpdateRequest
from security.auth import verify_any_token
from security.principal import AuthPrincipal
from services.place_service import (
    create_place,
    delete_place,
    get_place,
    get_places_by_owner,
    update_place,
    upload_place_image,
)

router = APIRouter(prefix="/places", tags=["Places"])


@router.get("/user/{user_id}")
@document_response(message="Places fetched successfully", success_example=[])
async def list_places_for_user(
    request: Request,
    user_id: str = Path(..., description="Creator user id."),
):
    return await get_places_by_owner(owner_id=user_id)


@router.post("/images")
@document_created(message="Image uploaded successfully", success_example={"image": "places/<user-id>/<key>.png"})
async def upload_image(
    request: Request,
    file: UploadFile = File(...),
    principal: AuthPrincipal = Depends(verify_any_token),
):
    payload = await file.read()
    reference = await upload_place_image(
        owner_id=principal.user_id,
        file_name=file.filename or "",
        payload=payload,
        content_type=file.content_type,
    )
    return PlaceImageOut(image=reference)


@router.get("/{place_id}")
@document_response(message="Place fetched successfully")
async def fetch_place(
    request: Request,
    place_id: str = Path(..., description="Place id."),
):
    return await get_place(place_id=place_id)


@router.post("")
@document_created(message="Place created successfully")
async def create_place_for_principal(
    request: Request,
    payload: PlaceCreateRequest,
    principal: AuthPrincipal = Depends(verify_any_token),
):
    return await create_place(
        owner_id=principal.user_id,
        acting_user_id=principal.user_id,
        title=payload.title,
        description=payload.description,
        address=payload.address,
        image=payload.image,
    )


@router.patch("/{place_id}")
@document_response(message="Place updated successfully")
async def update_place_for_principal(
    request: Request,
    payload: PlaceUpdateRequest,
    place_id: str = Path(..., description="Place id."),
    principal: AuthPrincipal = Depends(verify_any_token),
):
    return await update_place(
        place_id=place_id,
        acting_user_id=principal.user_id,
        title=payload.title,
        description=payload.description,
    )


@router.delete("/{place_id}")
@document_deleted(message="Deleted place")
async def delete_place_for_principal(
    request: Request,
    place_id: str = Path(..., description="Place id."),
    principal: AuthPrincipal = Depends(verify_any_token),
):
    await delete_place(place_id=place_id, acting_user_id=principal.user_id)
    return {"deleted": True}
