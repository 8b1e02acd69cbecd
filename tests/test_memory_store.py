from __future__ import annotations

import asyncio

import pytest

from core.errors import AppException, ErrorCode, owner_not_found
from core.store import MemoryEntityStore


def _place(place_id: str = "p1", creator: str = "u1") -> dict:
    return {
        "_id": place_id,
        "title": "Empire State",
        "description": "a famous place",
        "address": "20 W 34th St",
        "location": {"lat": 40.7484, "lng": -73.9857},
        "image": "places/p1.png",
        "creator": creator,
    }


async def _store_with_user() -> MemoryEntityStore:
    store = MemoryEntityStore()
    await store.insert_user({"_id": "u1", "name": "Max"})
    return store


@pytest.mark.asyncio
async def test_transaction_writes_are_invisible_until_commit():
    store = await _store_with_user()
    observed: dict = {}

    async def _create(tx):
        await tx.insert_place(_place())
        await tx.add_place_to_user("u1", "p1")
        observed["inside"] = await tx.find_place("p1")
        observed["outside_place"] = await store.find_place("p1")
        observed["outside_user"] = await store.find_user("u1")
        return "done"

    result = await store.run_in_transaction(_create)

    assert result == "done"
    assert observed["inside"]["_id"] == "p1"
    assert observed["outside_place"] is None
    assert observed["outside_user"]["places"] == []
    assert (await store.find_user("u1"))["places"] == ["p1"]
    assert (await store.find_place("p1"))["creator"] == "u1"


@pytest.mark.asyncio
async def test_error_in_callback_discards_all_writes():
    store = await _store_with_user()

    async def _create_then_fail(tx):
        await tx.insert_place(_place())
        await tx.add_place_to_user("u1", "p1")
        raise owner_not_found("u1")

    with pytest.raises(AppException) as exc_info:
        await store.run_in_transaction(_create_then_fail)

    assert exc_info.value.detail["code"] == ErrorCode.OWNER_NOT_FOUND.value
    assert await store.find_place("p1") is None
    assert (await store.find_user("u1"))["places"] == []


@pytest.mark.asyncio
async def test_cancelled_transaction_is_aborted():
    store = await _store_with_user()
    staged = asyncio.Event()

    async def _create_slowly(tx):
        await tx.insert_place(_place())
        await tx.add_place_to_user("u1", "p1")
        staged.set()
        await asyncio.sleep(10)

    task = asyncio.create_task(store.run_in_transaction(_create_slowly))
    await staged.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert await store.find_place("p1") is None
    assert (await store.find_user("u1"))["places"] == []

    async def _noop(tx):
        return await tx.find_user("u1")

    # lock was released by the cancelled transaction
    assert (await asyncio.wait_for(store.run_in_transaction(_noop), timeout=1))["_id"] == "u1"


@pytest.mark.asyncio
async def test_add_place_to_missing_user_reports_false():
    store = MemoryEntityStore()

    async def _attach(tx):
        return await tx.add_place_to_user("ghost", "p1")

    assert await store.run_in_transaction(_attach) is False


@pytest.mark.asyncio
async def test_delete_and_unlink_commit_together():
    store = await _store_with_user()

    async def _create(tx):
        await tx.insert_place(_place())
        await tx.add_place_to_user("u1", "p1")

    async def _delete(tx):
        deleted = await tx.delete_place("p1")
        unlinked = await tx.remove_place_from_user("u1", "p1")
        return deleted, unlinked

    await store.run_in_transaction(_create)
    assert await store.run_in_transaction(_delete) == (True, True)
    assert await store.find_place("p1") is None
    assert (await store.find_user("u1"))["places"] == []

    async def _delete_again(tx):
        return await tx.delete_place("p1")

    assert await store.run_in_transaction(_delete_again) is False


@pytest.mark.asyncio
async def test_add_place_to_user_does_not_duplicate_ids():
    store = await _store_with_user()

    async def _attach_twice(tx):
        await tx.add_place_to_user("u1", "p1")
        await tx.add_place_to_user("u1", "p1")

    await store.run_in_transaction(_attach_twice)
    assert (await store.find_user("u1"))["places"] == ["p1"]


@pytest.mark.asyncio
async def test_duplicate_place_id_is_a_store_failure():
    store = await _store_with_user()

    async def _insert(tx):
        await tx.insert_place(_place())

    await store.run_in_transaction(_insert)
    with pytest.raises(AppException) as exc_info:
        await store.run_in_transaction(_insert)

    assert exc_info.value.detail["code"] == ErrorCode.STORE_UNAVAILABLE.value


@pytest.mark.asyncio
async def test_returned_documents_are_copies():
    store = await _store_with_user()

    user = await store.find_user("u1")
    user["places"].append("tampered")

    assert (await store.find_user("u1"))["places"] == []


@pytest.mark.asyncio
async def test_update_place_fields_and_find_by_creator():
    store = await _store_with_user()

    async def _insert(tx):
        await tx.insert_place(_place())
        await tx.insert_place(_place("p2", creator="u2"))

    await store.run_in_transaction(_insert)

    updated = await store.update_place_fields("p1", {"title": "Renamed"})
    assert updated["title"] == "Renamed"
    assert await store.update_place_fields("missing", {"title": "x"}) is None
    assert [row["_id"] for row in await store.find_places_by_creator("u1")] == ["p1"]


@pytest.mark.asyncio
async def test_image_in_use_sees_staged_writes():
    store = await _store_with_user()

    async def _create_two(tx):
        await tx.insert_place(_place())
        await tx.insert_place(_place("p2"))

    async def _delete_one(tx):
        await tx.delete_place("p1")
        return await tx.image_in_use("places/p1.png")

    async def _delete_other(tx):
        await tx.delete_place("p2")
        return await tx.image_in_use("places/p1.png")

    await store.run_in_transaction(_create_two)
    assert await store.run_in_transaction(_delete_one) is True
    assert await store.run_in_transaction(_delete_other) is False
