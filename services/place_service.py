"""Place lifecycle with owner bookkeeping.

A place and its creator's ``places`` list are always written in the same
store transaction, so ``place.creator == user.id`` holds exactly when
``place.id in user.places``. Geocoding happens before the transaction opens
and image cleanup after it commits; neither can leave the pair half-written.

Uploaded image keys embed the uploader's id. A place may reference only its
owner's uploads or an absolute URL, and a key is released only once no place
references it.

Known limitation: an update racing a delete of the same place is not
serialized. The loser either gets a 404 or has its edit silently dropped.
"""

from __future__ import annotations

import asyncio
import logging
import re
import time
from pathlib import Path
from uuid import uuid4

from bson import ObjectId

from core.errors import AppException, ErrorCode, owner_not_found, resource_not_found, validation_failed
from core.settings import get_settings
from core.storage import AssetStorageManager, is_external_reference
from core.store import StoreTransaction, get_entity_store
from repositories.place_repo import get_place_by_id, get_places_by_creator, update_place_fields
from repositories.user_repo import get_user_by_id
from schemas.place import PlaceCreate, PlaceOut
from security.place_access_check import ensure_place_owner
from services.geocoding_service import resolve_coordinates

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".gif"}
UPLOAD_KEY_PREFIX = "places"
_UPLOAD_KEY_PATTERN = re.compile(r"^places/(?P<owner>[^/]+)/[0-9a-f]{32}\.(?:png|jpg|jpeg|webp|gif)$")


def _epoch() -> int:
    return int(time.time())


def _require_text(value: str | None, field: str) -> str:
    normalized = (value or "").strip()
    if not normalized:
        raise validation_failed(f"{field} must not be empty", field=field)
    return normalized


def _default_image() -> str:
    return get_settings().default_place_image


def _upload_key_owner(reference: str) -> str | None:
    match = _UPLOAD_KEY_PATTERN.match(reference)
    return match.group("owner") if match else None


def _resolve_image(image: str | None, owner_id: str) -> str:
    """Accept an absolute URL or a key this service issued to the owner."""
    reference = (image or "").strip()
    if not reference:
        return _default_image()
    if is_external_reference(reference):
        return reference
    if _upload_key_owner(reference) != owner_id:
        raise validation_failed(
            "image must be an absolute URL or an image uploaded by the place owner",
            field="image",
        )
    return reference


async def create_place(
    *,
    owner_id: str,
    acting_user_id: str,
    title: str,
    description: str,
    address: str,
    image: str | None = None,
) -> PlaceOut:
    title = _require_text(title, "title")
    description = _require_text(description, "description")
    address = _require_text(address, "address")
    image = _resolve_image(image, owner_id)

    # Geocoding is not transactional; it must finish before anything is written.
    location = await resolve_coordinates(address)

    owner = await get_user_by_id(owner_id)
    if owner is None:
        raise owner_not_found(owner_id)

    place = PlaceCreate(
        id=str(ObjectId()),
        title=title,
        description=description,
        address=address,
        location=location,
        image=image,
        creator=owner.id,
    )

    async def _insert_with_owner(tx: StoreTransaction) -> None:
        await tx.insert_place(place.to_document())
        if not await tx.add_place_to_user(owner.id, place.id):
            raise owner_not_found(owner.id)

    await get_entity_store().run_in_transaction(_insert_with_owner)
    logger.info(
        "Created place %s for user %s (requested by %s)",
        place.id,
        owner.id,
        acting_user_id,
        extra={"place_id": place.id, "user_id": owner.id},
    )
    return PlaceOut(**place.model_dump())


async def update_place(
    *,
    place_id: str,
    acting_user_id: str,
    title: str,
    description: str,
) -> PlaceOut:
    title = _require_text(title, "title")
    description = _require_text(description, "description")

    place = await get_place(place_id)
    ensure_place_owner(place, acting_user_id)

    updated = await update_place_fields(
        place_id,
        {"title": title, "description": description, "last_updated": _epoch()},
    )
    if updated is None:
        raise resource_not_found("Place", place_id)

    logger.info("Updated place %s", place_id, extra={"place_id": place_id, "user_id": acting_user_id})
    return updated


async def _release_image(reference: str, *, place_id: str, creator: str) -> None:
    if not reference or _upload_key_owner(reference) != creator:
        return
    try:
        provider = AssetStorageManager.get_instance().provider
        await asyncio.to_thread(provider.release, object_key=reference)
    except Exception as err:
        logger.warning(
            "Could not release image %s of deleted place %s: %s",
            reference,
            place_id,
            err,
            extra={"place_id": place_id},
        )


async def delete_place(*, place_id: str, acting_user_id: str) -> None:
    place = await get_place(place_id)
    ensure_place_owner(place, acting_user_id)

    async def _delete_with_owner(tx: StoreTransaction) -> bool:
        if not await tx.delete_place(place.id):
            raise resource_not_found("Place", place.id)
        await tx.remove_place_from_user(place.creator, place.id)
        # a key still referenced by another place stays in the asset store
        return not await tx.image_in_use(place.image)

    image_released = await get_entity_store().run_in_transaction(_delete_with_owner)
    logger.info("Deleted place %s", place.id, extra={"place_id": place.id, "user_id": place.creator})

    if image_released:
        await _release_image(place.image, place_id=place.id, creator=place.creator)


async def get_place(place_id: str) -> PlaceOut:
    place = await get_place_by_id(place_id)
    if place is None:
        raise resource_not_found("Place", place_id)
    return place


async def get_places_by_owner(owner_id: str) -> list[PlaceOut]:
    places = await get_places_by_creator(owner_id)
    if not places:
        raise AppException(
            status_code=404,
            code=ErrorCode.RESOURCE_NOT_FOUND,
            message="Could not find places for the provided user id",
            details={"resource": "Place", "creator": owner_id},
        )
    return places


async def upload_place_image(
    *,
    owner_id: str,
    file_name: str,
    payload: bytes,
    content_type: str | None = None,
) -> str:
    owner_id = _require_text(owner_id, "owner_id")
    if "/" in owner_id:
        raise validation_failed("owner_id must not contain '/'", field="owner_id")

    extension = Path(file_name or "").suffix.lower()
    if extension not in ALLOWED_IMAGE_EXTENSIONS:
        raise AppException(
            status_code=422,
            code=ErrorCode.ASSET_UPLOAD_INVALID,
            message="Unsupported image type",
            details={"allowedExtensions": sorted(ALLOWED_IMAGE_EXTENSIONS)},
        )
    if not payload:
        raise AppException(
            status_code=422,
            code=ErrorCode.ASSET_UPLOAD_INVALID,
            message="Image file is empty",
        )

    object_key = f"{UPLOAD_KEY_PREFIX}/{owner_id}/{uuid4().hex}{extension}"
    provider = AssetStorageManager.get_instance().provider
    stored = await asyncio.to_thread(
        provider.save_bytes,
        object_key=object_key,
        payload=payload,
        content_type=content_type,
    )
    return stored.object_key
