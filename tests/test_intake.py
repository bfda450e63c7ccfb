import io
import json

import httpx
import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from app.core.exceptions import AlreadyExistsError, NotificationError, ValidationError
from app.flow.states import BookingStatus
from app.services.intake_service import BookingIntake, parse_payload
from app.services.templates import NotificationKind
from app.services.twilio_service import TwilioSmsDispatcher
from tests.conftest import CUSTOMER_PHONE, EMPLOYEE_PHONE, RecordingDispatcher
from utils.booking_id_utils import BookingIdGenerator

PAYLOAD = {
    "customerName": "Alice",
    "phone": "+15551234567",
    "address": "1 Elm St",
    "serviceDate": "2024-06-01",
    "serviceTime": "10:00 AM",
    "lotSize": "0.25 acre",
    "estimatedPrice": "$45",
}


def image(name="lawn.jpg", content_type="image/jpeg", data=b"\xff\xd8\xff" + b"0" * 100):
    return UploadFile(file=io.BytesIO(data), filename=name, headers=Headers({"content-type": content_type}))


def test_parse_payload_from_json_string():
    request = parse_payload(json.dumps(PAYLOAD))
    assert request.customer_name == "Alice"
    assert request.lot_size == "0.25 acre"
    assert request.instructions is None


def test_parse_payload_normalizes_phone_and_blanks():
    request = parse_payload({**PAYLOAD, "phone": "+1 (555) 123-4567", "instructions": "  "})
    assert request.phone == "+15551234567"
    assert request.instructions is None


@pytest.mark.parametrize("raw", [None, "", "{not json", "[1, 2]"])
def test_parse_payload_rejects_malformed(raw):
    with pytest.raises(ValidationError):
        parse_payload(raw)


def test_parse_payload_reports_missing_fields():
    payload = {k: v for k, v in PAYLOAD.items() if k != "address"}
    with pytest.raises(ValidationError) as exc_info:
        parse_payload(payload)
    assert any(d["field"] == "address" for d in exc_info.value.details)


def test_parse_payload_rejects_bad_phone():
    with pytest.raises(ValidationError):
        parse_payload({**PAYLOAD, "phone": "12345"})


@pytest.mark.asyncio
async def test_submit_stores_pending_and_sends_both(intake, store, dispatcher):
    result = await intake.submit(parse_payload(PAYLOAD))

    assert result.booking.booking_id == "BK-1718000123456"
    stored = await store.get("BK-1718000123456")
    assert stored.status == BookingStatus.PENDING
    assert stored.confirmed_at is None

    assert dispatcher.kinds() == [
        NotificationKind.BOOKING_REQUEST_TO_EMPLOYEE,
        NotificationKind.BOOKING_ACK_TO_CUSTOMER,
    ]
    assert dispatcher.sent[0].to == EMPLOYEE_PHONE
    assert 'Reply "ACCEPT 123456"' in dispatcher.sent[0].body
    assert dispatcher.sent[1].to == CUSTOMER_PHONE
    assert result.employee_handle.sid == "SM0001"
    assert result.customer_handle.sid == "SM0002"


@pytest.mark.asyncio
async def test_submit_with_photos(intake, store, dispatcher, photo_store):
    result = await intake.submit(parse_payload(PAYLOAD), [image(), image("yard.png", "image/png")])

    assert len(result.booking.photos) == 2
    for name in result.booking.photos:
        assert (photo_store.upload_dir / name).exists()
    assert "Photos: 2 attached" in dispatcher.sent[0].body


@pytest.mark.asyncio
async def test_rejected_photo_stores_nothing(intake, store, dispatcher):
    with pytest.raises(ValidationError):
        await intake.submit(parse_payload(PAYLOAD), [image("notes.txt", "text/plain")])

    assert await store.list_all() == []
    assert dispatcher.attempts == []


@pytest.mark.asyncio
async def test_persistence_failure_sends_nothing(intake, store, dispatcher, make_booking, photo_store):
    await store.create(make_booking("BK-1718000123456", status=BookingStatus.CONFIRMED))

    with pytest.raises(AlreadyExistsError):
        await intake.submit(parse_payload(PAYLOAD), [image()])

    assert dispatcher.attempts == []
    assert list(photo_store.upload_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_failed_leg_keeps_booking_and_reports(store, id_generator):
    dispatcher = RecordingDispatcher(fail_kinds={NotificationKind.BOOKING_ACK_TO_CUSTOMER})
    intake = BookingIntake(store, dispatcher, id_generator, employee_phone=EMPLOYEE_PHONE)

    with pytest.raises(NotificationError) as exc_info:
        await intake.submit(parse_payload(PAYLOAD))

    details = exc_info.value.details
    assert details["bookingId"] == "BK-1718000123456"
    assert details["employeeSid"] == "SM0001"
    assert details["customerSid"] is None
    assert "booking-ack-to-customer" in details["failed"]
    assert (await store.get("BK-1718000123456")).status == BookingStatus.PENDING


@pytest.mark.asyncio
async def test_both_legs_attempted_when_first_fails(store, id_generator):
    dispatcher = RecordingDispatcher(fail_kinds={NotificationKind.BOOKING_REQUEST_TO_EMPLOYEE})
    intake = BookingIntake(store, dispatcher, id_generator, employee_phone=EMPLOYEE_PHONE)

    with pytest.raises(NotificationError):
        await intake.submit(parse_payload(PAYLOAD))

    assert dispatcher.attempts == [
        NotificationKind.BOOKING_REQUEST_TO_EMPLOYEE,
        NotificationKind.BOOKING_ACK_TO_CUSTOMER,
    ]


@pytest.mark.asyncio
async def test_missing_employee_phone_is_a_failed_leg(store, id_generator):
    dispatcher = RecordingDispatcher()
    intake = BookingIntake(store, dispatcher, id_generator, employee_phone=None)

    with pytest.raises(NotificationError) as exc_info:
        await intake.submit(parse_payload(PAYLOAD))

    assert "booking-request-to-employee" in exc_info.value.details["failed"]
    assert dispatcher.kinds() == [NotificationKind.BOOKING_ACK_TO_CUSTOMER]


@pytest.mark.asyncio
async def test_consecutive_submissions_get_distinct_codes(intake, store):
    first = await intake.submit(parse_payload(PAYLOAD))
    second = await intake.submit(parse_payload(PAYLOAD))
    assert first.booking.short_code != second.booking.short_code
    assert len(await store.list_by_status(BookingStatus.PENDING)) == 2


@pytest.mark.asyncio
async def test_colliding_short_code_draws_new_id(store, dispatcher):
    # 1_000_000 ms apart, so both IDs end in 123456
    ticks = iter([1718000123456, 1718001123456, 1718001123457])
    generator = BookingIdGenerator(clock=lambda: next(ticks))
    intake = BookingIntake(store, dispatcher, generator, employee_phone=EMPLOYEE_PHONE)

    first = await intake.submit(parse_payload(PAYLOAD))
    second = await intake.submit(parse_payload(PAYLOAD))

    assert first.booking.short_code == "123456"
    assert second.booking.booking_id == "BK-1718001123457"
    pending_codes = [b.short_code for b in await store.list_by_status(BookingStatus.PENDING)]
    assert sorted(pending_codes) == ["123456", "123457"]
    assert 'Reply "ACCEPT 123457"' in dispatcher.sent[2].body


@pytest.mark.asyncio
async def test_short_code_of_confirmed_booking_may_be_reused(store, dispatcher, make_booking):
    await store.create(make_booking("BK-1718000123456", status=BookingStatus.CONFIRMED))
    generator = BookingIdGenerator(clock=lambda: 1718001123456)
    intake = BookingIntake(store, dispatcher, generator, employee_phone=EMPLOYEE_PHONE)

    result = await intake.submit(parse_payload(PAYLOAD))

    assert result.booking.booking_id == "BK-1718001123456"


@pytest.mark.asyncio
async def test_malformed_provider_reply_is_a_failed_leg(store, id_generator):
    def handler(request):
        if httpx.QueryParams(request.content.decode())["Body"].startswith("Hi Alice"):
            return httpx.Response(201, text="<html>proxy</html>")
        return httpx.Response(201, json={"sid": "SM1", "status": "queued"})

    dispatcher = TwilioSmsDispatcher(
        account_sid="AC123",
        auth_token="secret",
        from_number="+15550000000",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )
    intake = BookingIntake(store, dispatcher, id_generator, employee_phone=EMPLOYEE_PHONE)

    with pytest.raises(NotificationError) as exc_info:
        await intake.submit(parse_payload(PAYLOAD))

    details = exc_info.value.details
    assert details["employeeSid"] == "SM1"
    assert details["customerSid"] is None
    assert (await store.get(details["bookingId"])).status == BookingStatus.PENDING
