"""
app/services/booking_store.py

Purpose: Booking persistence

- Create bookings (rejects duplicate IDs)
- Fetch by ID, list by status, list newest first
- Conditional status transitions: compare current status, then write
- MongoDB implementation plus an in-memory one for local runs and tests
"""

import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Dict, List

from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core.exceptions import (
    AlreadyExistsError,
    ConflictError,
    InvalidTransitionError,
    ResourceNotFoundError,
)
from app.core.logging import get_logger, LogContext
from app.db.mongo import check_database_health
from app.flow.states import BookingStatus, is_valid_transition
from app.models.booking import Booking

logger = get_logger(__name__)


def _check_transition(booking_id: str, expected_status: BookingStatus, updates: Dict[str, Any]) -> BookingStatus:
    """Validates the target status carried in ``updates``."""
    if "status" not in updates:
        raise InvalidTransitionError(
            "Transition updates must set a status",
            details={"booking_id": booking_id}
        )
    target = BookingStatus(updates["status"])
    if not is_valid_transition(expected_status, target):
        raise InvalidTransitionError(
            f"Cannot move booking from {BookingStatus(expected_status).value} to {target.value}",
            details={"booking_id": booking_id}
        )
    return target


def _to_document_fields(updates: Dict[str, Any]) -> Dict[str, Any]:
    """Maps model field names in ``updates`` to their stored (alias) names."""
    fields = {}
    for name, value in updates.items():
        if name not in Booking.model_fields:
            raise ValueError(f"Unknown booking field: {name}")
        alias = Booking.model_fields[name].alias or name
        if isinstance(value, BookingStatus):
            value = value.value
        fields[alias] = value
    return fields


class BookingStore(ABC):
    """
    Persistence contract for booking records.
    """

    @abstractmethod
    async def create(self, booking: Booking) -> Booking:
        """Persists a new booking. Raises AlreadyExistsError on ID reuse."""

    @abstractmethod
    async def get(self, booking_id: str) -> Booking:
        """Returns a booking. Raises ResourceNotFoundError."""

    @abstractmethod
    async def list_by_status(self, status: BookingStatus) -> List[Booking]:
        """Snapshot of bookings currently in ``status``."""

    @abstractmethod
    async def list_all(self) -> List[Booking]:
        """All bookings, newest first."""

    @abstractmethod
    async def transition(
        self,
        booking_id: str,
        expected_status: BookingStatus,
        updates: Dict[str, Any]
    ) -> Booking:
        """
        Applies ``updates`` only if the stored status still equals
        ``expected_status``.

        Args:
            booking_id: Booking to update
            expected_status: Status the caller observed
            updates: Model field names -> new values; must include "status"

        Returns:
            The updated booking

        Raises:
            InvalidTransitionError: Target status not reachable from expected_status
            ResourceNotFoundError: Unknown booking ID
            ConflictError: Stored status no longer equals expected_status
        """

    async def ping(self) -> bool:
        return True


class MongoBookingStore(BookingStore):
    """
    Booking store backed by the ``bookings`` collection.
    Conditional transitions use a single find_one_and_update filtered on
    both _id and status, so MongoDB serializes competing writers.
    """

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def create(self, booking: Booking) -> Booking:
        with LogContext(booking_id=booking.booking_id):
            try:
                await self.collection.insert_one(booking.to_document())
            except DuplicateKeyError as e:
                logger.warning("Booking ID already exists")
                raise AlreadyExistsError(
                    f"Booking {booking.booking_id} already exists",
                    details={"booking_id": booking.booking_id}
                ) from e

            logger.info("Booking stored")
            return booking

    async def get(self, booking_id: str) -> Booking:
        doc = await self.collection.find_one({"_id": booking_id})
        if not doc:
            raise ResourceNotFoundError(
                f"Booking {booking_id} not found",
                details={"booking_id": booking_id}
            )
        return Booking.from_document(doc)

    async def list_by_status(self, status: BookingStatus) -> List[Booking]:
        cursor = self.collection.find({"status": BookingStatus(status).value})
        docs = await cursor.to_list(length=None)
        return [Booking.from_document(doc) for doc in docs]

    async def list_all(self) -> List[Booking]:
        cursor = self.collection.find({}).sort("createdAt", DESCENDING)
        docs = await cursor.to_list(length=None)
        return [Booking.from_document(doc) for doc in docs]

    async def transition(
        self,
        booking_id: str,
        expected_status: BookingStatus,
        updates: Dict[str, Any]
    ) -> Booking:
        expected_status = BookingStatus(expected_status)
        _check_transition(booking_id, expected_status, updates)

        with LogContext(booking_id=booking_id):
            doc = await self.collection.find_one_and_update(
                {"_id": booking_id, "status": expected_status.value},
                {"$set": _to_document_fields(updates)},
                return_document=ReturnDocument.AFTER,
            )

            if doc is None:
                # Either the booking is gone or someone else moved it first
                current = await self.collection.find_one({"_id": booking_id}, {"status": 1})
                if current is None:
                    raise ResourceNotFoundError(
                        f"Booking {booking_id} not found",
                        details={"booking_id": booking_id}
                    )
                logger.warning(
                    f"Conditional update lost: expected {expected_status.value}, found {current.get('status')}"
                )
                raise ConflictError(
                    f"Booking {booking_id} is no longer {expected_status.value}",
                    details={"booking_id": booking_id, "current_status": current.get("status")}
                )

            logger.info(f"Booking moved {expected_status.value} -> {doc.get('status')}")
            return Booking.from_document(doc)

    async def ping(self) -> bool:
        return await check_database_health(self.collection.database)


class InMemoryBookingStore(BookingStore):
    """
    Process-local booking store.

    Transitions are serialized per booking with an asyncio.Lock map;
    bookings with different IDs never wait on each other.
    """

    def __init__(self):
        self._bookings: Dict[str, Booking] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def create(self, booking: Booking) -> Booking:
        async with self._locks[booking.booking_id]:
            if booking.booking_id in self._bookings:
                raise AlreadyExistsError(
                    f"Booking {booking.booking_id} already exists",
                    details={"booking_id": booking.booking_id}
                )
            self._bookings[booking.booking_id] = booking.model_copy(deep=True)

        with LogContext(booking_id=booking.booking_id):
            logger.info("Booking stored")
        return booking

    async def get(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise ResourceNotFoundError(
                f"Booking {booking_id} not found",
                details={"booking_id": booking_id}
            )
        return booking.model_copy(deep=True)

    async def list_by_status(self, status: BookingStatus) -> List[Booking]:
        status = BookingStatus(status)
        return [
            booking.model_copy(deep=True)
            for booking in list(self._bookings.values())
            if booking.status == status
        ]

    async def list_all(self) -> List[Booking]:
        bookings = sorted(self._bookings.values(), key=lambda b: b.created_at, reverse=True)
        return [booking.model_copy(deep=True) for booking in bookings]

    async def transition(
        self,
        booking_id: str,
        expected_status: BookingStatus,
        updates: Dict[str, Any]
    ) -> Booking:
        expected_status = BookingStatus(expected_status)
        _check_transition(booking_id, expected_status, updates)
        _to_document_fields(updates)  # rejects unknown fields

        async with self._locks[booking_id]:
            current = self._bookings.get(booking_id)
            if current is None:
                raise ResourceNotFoundError(
                    f"Booking {booking_id} not found",
                    details={"booking_id": booking_id}
                )
            if current.status != expected_status:
                with LogContext(booking_id=booking_id):
                    logger.warning(
                        f"Conditional update lost: expected {expected_status.value}, found {current.status.value}"
                    )
                raise ConflictError(
                    f"Booking {booking_id} is no longer {expected_status.value}",
                    details={"booking_id": booking_id, "current_status": current.status.value}
                )

            updated = current.model_copy(update=updates, deep=True)
            updated.status = BookingStatus(updates["status"])
            self._bookings[booking_id] = updated

        with LogContext(booking_id=booking_id):
            logger.info(f"Booking moved {expected_status.value} -> {updated.status.value}")
        return updated.model_copy(deep=True)
