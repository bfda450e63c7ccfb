from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.container import assemble
from app.core.exceptions import TransportError
from app.flow.reply_resolver import ReplyResolver
from app.flow.states import BookingStatus
from app.main import create_app
from app.models.booking import Booking
from app.services.availability_service import InMemoryAvailabilityStore
from app.services.booking_store import InMemoryBookingStore
from app.services.intake_service import BookingIntake
from app.services.photo_service import PhotoStore
from app.services.templates import NotificationKind
from app.services.twilio_service import DeliveryHandle, NotificationDispatcher
from utils.booking_id_utils import BookingIdGenerator

EMPLOYEE_PHONE = "+15557654321"
CUSTOMER_PHONE = "+15551234567"
BASE_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@dataclass
class SentMessage:
    to: str
    kind: NotificationKind
    data: Dict[str, Any]
    body: str


class RecordingDispatcher(NotificationDispatcher):
    """Renders and records every message; fails the kinds it is told to."""

    def __init__(self, fail_kinds=()):
        super().__init__(business_name="Top Lawns Lincoln")
        self.fail_kinds = set(fail_kinds)
        self.sent: List[SentMessage] = []
        self.attempts: List[NotificationKind] = []

    async def send(self, to, kind, data):
        kind = NotificationKind(kind)
        self.attempts.append(kind)
        body = self.render(kind, data)
        if kind in self.fail_kinds:
            raise TransportError("provider rejected message", details={"to": to, "kind": kind.value})
        self.sent.append(SentMessage(to=to, kind=kind, data=dict(data), body=body))
        return DeliveryHandle(sid=f"SM{len(self.sent):04d}", status="queued", to=to, kind=kind)

    def kinds(self) -> List[NotificationKind]:
        return [m.kind for m in self.sent]

    def to(self, kind: NotificationKind) -> List[SentMessage]:
        return [m for m in self.sent if m.kind == kind]


@pytest.fixture
def store():
    return InMemoryBookingStore()


@pytest.fixture
def availability_store():
    return InMemoryAvailabilityStore()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def resolver(store, dispatcher):
    return ReplyResolver(store=store, dispatcher=dispatcher)


@pytest.fixture
def photo_store(tmp_path):
    return PhotoStore(upload_dir=str(tmp_path / "uploads"), max_files=5, max_file_bytes=1024)


@pytest.fixture
def id_generator():
    ticks = iter(range(1718000123456, 1718000123456 + 1000))
    return BookingIdGenerator(prefix="BK", clock=lambda: next(ticks))


@pytest.fixture
def intake(store, dispatcher, id_generator, photo_store):
    return BookingIntake(
        store=store,
        dispatcher=dispatcher,
        id_generator=id_generator,
        employee_phone=EMPLOYEE_PHONE,
        photo_store=photo_store
    )


@pytest.fixture
def make_booking():
    """Builds a Booking; ``minutes`` offsets createdAt from a fixed base time."""

    def _make(booking_id: str, status=BookingStatus.PENDING, minutes: int = 0, **fields) -> Booking:
        values = {
            "customer_name": "Alice",
            "phone": CUSTOMER_PHONE,
            "address": "1 Elm St",
            "service_date": "2024-06-01",
            "service_time": "10:00 AM",
            "estimated_price": "$45",
            "created_at": BASE_TIME + timedelta(minutes=minutes),
        }
        values.update(fields)
        return Booking(booking_id=booking_id, status=status, **values)

    return _make


@pytest.fixture
def app_settings(tmp_path):
    return Settings(
        _env_file=None,
        ENVIRONMENT="development",
        STORAGE_BACKEND="memory",
        EMPLOYEE_PHONE_NUMBER=EMPLOYEE_PHONE,
        UPLOAD_DIR=str(tmp_path / "uploads"),
    )


@pytest.fixture
def container(app_settings, store, availability_store, dispatcher, id_generator):
    return assemble(
        app_settings,
        booking_store=store,
        availability_store=availability_store,
        dispatcher=dispatcher,
        id_generator=id_generator
    )


@pytest.fixture
def client(container, app_settings):
    app = create_app(container=container, config=app_settings)
    with TestClient(app) as test_client:
        yield test_client
