from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import DuplicateKeyError

from app.core.exceptions import (
    AlreadyExistsError,
    ConflictError,
    InvalidTransitionError,
    ResourceNotFoundError,
)
from app.flow.states import BookingStatus
from app.services.booking_store import MongoBookingStore
from utils.time_utils import utc_now

CONFIRM = {"status": BookingStatus.CONFIRMED, "confirmed_by": "+15557654321"}


# ============================================================
# IN-MEMORY STORE
# ============================================================

@pytest.mark.asyncio
async def test_create_and_get(store, make_booking):
    await store.create(make_booking("BK-1718000123456"))
    booking = await store.get("BK-1718000123456")
    assert booking.customer_name == "Alice"
    assert booking.status == BookingStatus.PENDING


@pytest.mark.asyncio
async def test_create_rejects_duplicate_id(store, make_booking):
    await store.create(make_booking("BK-1718000123456"))
    with pytest.raises(AlreadyExistsError):
        await store.create(make_booking("BK-1718000123456", customer_name="Bob"))
    assert (await store.get("BK-1718000123456")).customer_name == "Alice"


@pytest.mark.asyncio
async def test_get_unknown_raises(store):
    with pytest.raises(ResourceNotFoundError):
        await store.get("BK-0000000000000")


@pytest.mark.asyncio
async def test_returned_bookings_are_copies(store, make_booking):
    await store.create(make_booking("BK-1718000123456"))
    booking = await store.get("BK-1718000123456")
    booking.status = BookingStatus.COMPLETED
    assert (await store.get("BK-1718000123456")).status == BookingStatus.PENDING


@pytest.mark.asyncio
async def test_list_by_status_and_list_all_order(store, make_booking):
    await store.create(make_booking("BK-1718000000001", minutes=0))
    await store.create(make_booking("BK-1718000000002", minutes=5, status=BookingStatus.CONFIRMED))
    await store.create(make_booking("BK-1718000000003", minutes=10))

    pending = await store.list_by_status(BookingStatus.PENDING)
    assert {b.booking_id for b in pending} == {"BK-1718000000001", "BK-1718000000003"}

    newest_first = [b.booking_id for b in await store.list_all()]
    assert newest_first == ["BK-1718000000003", "BK-1718000000002", "BK-1718000000001"]


@pytest.mark.asyncio
async def test_transition_applies_updates(store, make_booking):
    await store.create(make_booking("BK-1718000123456"))
    now = utc_now()
    updated = await store.transition(
        "BK-1718000123456",
        BookingStatus.PENDING,
        {**CONFIRM, "confirmed_at": now}
    )
    assert updated.status == BookingStatus.CONFIRMED
    assert updated.confirmed_at == now
    assert updated.confirmed_by == "+15557654321"
    assert (await store.get("BK-1718000123456")).status == BookingStatus.CONFIRMED


@pytest.mark.asyncio
async def test_transition_conflict_when_status_moved(store, make_booking):
    await store.create(make_booking("BK-1718000123456"))
    await store.transition("BK-1718000123456", BookingStatus.PENDING, CONFIRM)

    with pytest.raises(ConflictError) as exc_info:
        await store.transition("BK-1718000123456", BookingStatus.PENDING, CONFIRM)
    assert exc_info.value.details["current_status"] == "confirmed"


@pytest.mark.asyncio
async def test_transition_unknown_booking(store):
    with pytest.raises(ResourceNotFoundError):
        await store.transition("BK-0000000000000", BookingStatus.PENDING, CONFIRM)


@pytest.mark.asyncio
async def test_transition_rejects_backwards_move(store, make_booking):
    await store.create(make_booking("BK-1718000123456", status=BookingStatus.CONFIRMED))
    with pytest.raises(InvalidTransitionError):
        await store.transition(
            "BK-1718000123456",
            BookingStatus.CONFIRMED,
            {"status": BookingStatus.PENDING}
        )


@pytest.mark.asyncio
async def test_transition_requires_status(store, make_booking):
    await store.create(make_booking("BK-1718000123456"))
    with pytest.raises(InvalidTransitionError):
        await store.transition("BK-1718000123456", BookingStatus.PENDING, {"confirmed_by": "x"})


# ============================================================
# MONGO STORE
# ============================================================

def mock_collection():
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.database.command = AsyncMock(return_value={"ok": 1})
    return collection


@pytest.mark.asyncio
async def test_mongo_create_uses_booking_id_as_document_id(make_booking):
    collection = mock_collection()
    await MongoBookingStore(collection).create(make_booking("BK-1718000123456"))

    doc = collection.insert_one.call_args.args[0]
    assert doc["_id"] == "BK-1718000123456"
    assert doc["status"] == "pending"
    assert doc["customerName"] == "Alice"


@pytest.mark.asyncio
async def test_mongo_create_duplicate(make_booking):
    collection = mock_collection()
    collection.insert_one.side_effect = DuplicateKeyError("dup")
    with pytest.raises(AlreadyExistsError):
        await MongoBookingStore(collection).create(make_booking("BK-1718000123456"))


@pytest.mark.asyncio
async def test_mongo_list_by_status_queries_stored_value(make_booking):
    collection = mock_collection()
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=[make_booking("BK-1718000123456").to_document()])
    collection.find.return_value = cursor

    bookings = await MongoBookingStore(collection).list_by_status(BookingStatus.PENDING)

    collection.find.assert_called_once_with({"status": "pending"})
    assert [b.booking_id for b in bookings] == ["BK-1718000123456"]


@pytest.mark.asyncio
async def test_mongo_transition_filters_on_expected_status(make_booking):
    collection = mock_collection()
    confirmed = make_booking("BK-1718000123456", status=BookingStatus.CONFIRMED).to_document()
    collection.find_one_and_update.return_value = confirmed

    updated = await MongoBookingStore(collection).transition(
        "BK-1718000123456", BookingStatus.PENDING, CONFIRM
    )

    query, update = collection.find_one_and_update.call_args.args
    assert query == {"_id": "BK-1718000123456", "status": "pending"}
    assert update == {"$set": {"status": "confirmed", "confirmedBy": "+15557654321"}}
    assert updated.status == BookingStatus.CONFIRMED


@pytest.mark.asyncio
async def test_mongo_transition_conflict():
    collection = mock_collection()
    collection.find_one.return_value = {"_id": "BK-1718000123456", "status": "confirmed"}
    with pytest.raises(ConflictError):
        await MongoBookingStore(collection).transition(
            "BK-1718000123456", BookingStatus.PENDING, CONFIRM
        )


@pytest.mark.asyncio
async def test_mongo_transition_not_found():
    collection = mock_collection()
    with pytest.raises(ResourceNotFoundError):
        await MongoBookingStore(collection).transition(
            "BK-1718000123456", BookingStatus.PENDING, CONFIRM
        )


@pytest.mark.asyncio
async def test_mongo_ping_reports_failure():
    collection = mock_collection()
    store = MongoBookingStore(collection)
    assert await store.ping() is True

    collection.database.command.side_effect = RuntimeError("down")
    assert await store.ping() is False
