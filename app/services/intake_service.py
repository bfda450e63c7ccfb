"""
app/services/intake_service.py

Purpose: New booking intake

- Validates the booking form payload
- Stores photos, assigns the booking ID, persists the booking
- Sends the employee request and the customer acknowledgement
- Persistence failures abort before any SMS; SMS failures never undo the booking
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from fastapi import UploadFile
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import NotificationError, TransportError, ValidationError
from app.core.logging import get_logger, LogContext
from app.flow.states import BookingStatus
from app.models.booking import Booking
from app.schemas.booking import BookingRequest
from app.services.booking_store import BookingStore
from app.services.photo_service import PhotoStore
from app.services.templates import NotificationKind
from app.services.twilio_service import DeliveryHandle, NotificationDispatcher
from utils.booking_id_utils import BookingIdGenerator, short_code
from utils.constants import DEFAULT_ACCEPT_KEYWORD

logger = get_logger(__name__)


@dataclass
class IntakeResult:
    """Stored booking plus the delivery handles of both intake messages."""
    booking: Booking
    employee_handle: DeliveryHandle
    customer_handle: DeliveryHandle


def parse_payload(raw: Union[str, bytes, Mapping[str, Any], None]) -> BookingRequest:
    """
    Validates a booking payload given as a JSON string or a mapping.

    Raises:
        ValidationError: Malformed JSON or missing/invalid fields
    """
    if raw is None or raw == "":
        raise ValidationError("bookingData is required")

    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValidationError("bookingData is not valid JSON", details={"error": str(e)}) from e

    if not isinstance(raw, Mapping):
        raise ValidationError("bookingData must be a JSON object")

    try:
        return BookingRequest.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid booking data",
            details=[
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ]
        ) from e


class BookingIntake:
    """
    Creates bookings and fires the initial notification pair.
    """

    def __init__(
        self,
        store: BookingStore,
        dispatcher: NotificationDispatcher,
        id_generator: BookingIdGenerator,
        employee_phone: Optional[str],
        photo_store: Optional[PhotoStore] = None,
        accept_keyword: str = DEFAULT_ACCEPT_KEYWORD,
        confirmation_window_minutes: int = 30
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.id_generator = id_generator
        self.employee_phone = employee_phone
        self.photo_store = photo_store
        self.accept_keyword = accept_keyword
        self.confirmation_window_minutes = confirmation_window_minutes

    async def submit(
        self,
        request: BookingRequest,
        uploads: Sequence[UploadFile] = ()
    ) -> IntakeResult:
        """
        Stores a new pending booking and notifies employee and customer.

        Raises:
            ValidationError: Photo rejected
            AlreadyExistsError: ID collision in the store
            NotificationError: Booking stored but one or both SMS failed
        """
        photos = []
        if uploads:
            if self.photo_store is None:
                raise ValidationError("Photo uploads are not enabled")
            photos = await self.photo_store.save_all(uploads)

        try:
            booking_id = await self._unclaimed_booking_id()
        except Exception:
            if photos and self.photo_store is not None:
                self.photo_store.delete(photos)
            raise

        booking = Booking(
            booking_id=booking_id,
            photos=photos,
            **request.model_dump()
        )

        with LogContext(booking_id=booking.booking_id, phone=booking.phone):
            try:
                booking = await self.store.create(booking)
            except Exception:
                logger.error("Failed to persist booking, no notifications sent", exc_info=True)
                if photos and self.photo_store is not None:
                    self.photo_store.delete(photos)
                raise

            logger.info(f"🌱 New booking {booking.booking_id} ({booking.short_code})")

            data = self._template_data(booking)
            handles: Dict[NotificationKind, DeliveryHandle] = {}
            failures: Dict[str, str] = {}

            legs = [
                (self.employee_phone, NotificationKind.BOOKING_REQUEST_TO_EMPLOYEE),
                (booking.phone, NotificationKind.BOOKING_ACK_TO_CUSTOMER),
            ]
            for to, kind in legs:
                if not to:
                    failures[kind.value] = "No recipient configured"
                    logger.error(f"No recipient for {kind.value}")
                    continue
                try:
                    handles[kind] = await self.dispatcher.send(to, kind, data)
                except TransportError as e:
                    failures[kind.value] = e.message
                    logger.error(f"Failed to send {kind.value}: {e.message}")

            if failures:
                employee = handles.get(NotificationKind.BOOKING_REQUEST_TO_EMPLOYEE)
                customer = handles.get(NotificationKind.BOOKING_ACK_TO_CUSTOMER)
                raise NotificationError(
                    "Booking saved but notification failed",
                    details={
                        "bookingId": booking.booking_id,
                        "employeeSid": employee.sid if employee else None,
                        "customerSid": customer.sid if customer else None,
                        "failed": failures
                    }
                )

            return IntakeResult(
                booking=booking,
                employee_handle=handles[NotificationKind.BOOKING_REQUEST_TO_EMPLOYEE],
                customer_handle=handles[NotificationKind.BOOKING_ACK_TO_CUSTOMER]
            )

    async def _unclaimed_booking_id(self) -> str:
        """
        Next generator ID whose short code no pending booking holds.

        IDs ``1_000_000`` ms apart share a short code; the generator is
        strictly increasing, so drawing again always moves past a clash.
        """
        pending = await self.store.list_by_status(BookingStatus.PENDING)
        taken = {booking.short_code for booking in pending}

        booking_id = self.id_generator.new_id()
        while short_code(booking_id) in taken:
            logger.warning(f"Short code of {booking_id} is held by a pending booking, drawing a new ID")
            booking_id = self.id_generator.new_id()
        return booking_id

    def _template_data(self, booking: Booking) -> Dict[str, Any]:
        return {
            **booking.template_data(),
            "accept_keyword": self.accept_keyword,
            "confirmation_window_minutes": self.confirmation_window_minutes,
        }
