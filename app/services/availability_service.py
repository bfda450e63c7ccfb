"""
app/services/availability_service.py

Purpose: Bookable time slots per calendar date

- Returns the stored slots, or the default five slots when none are set
- Last write wins
"""

from abc import ABC, abstractmethod
from typing import Dict, List

from motor.motor_asyncio import AsyncIOMotorCollection

from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.schemas.availability import AvailabilitySlots
from utils.constants import DEFAULT_TIME_SLOTS
from utils.time_utils import utc_now, ensure_utc
from utils.validation_utils import validate_date_key

logger = get_logger(__name__)


def _check_date(date: str):
    if not validate_date_key(date):
        raise ValidationError("date must be YYYY-MM-DD", details={"date": date})


def default_availability(date: str) -> AvailabilitySlots:
    return AvailabilitySlots(date=date, time_slots=list(DEFAULT_TIME_SLOTS))


class AvailabilityStore(ABC):

    @abstractmethod
    async def get(self, date: str) -> AvailabilitySlots:
        """Stored slots for ``date`` or the default set."""

    @abstractmethod
    async def set(self, date: str, time_slots: List[str]) -> AvailabilitySlots:
        """Replaces the slots for ``date``."""


class MongoAvailabilityStore(AvailabilityStore):

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def get(self, date: str) -> AvailabilitySlots:
        _check_date(date)
        doc = await self.collection.find_one({"_id": date})
        if not doc:
            logger.debug(f"No availability stored for {date}, using defaults")
            return default_availability(date)
        return AvailabilitySlots(
            date=doc["date"],
            time_slots=doc.get("timeSlots", []),
            updated_at=ensure_utc(doc.get("updatedAt"))
        )

    async def set(self, date: str, time_slots: List[str]) -> AvailabilitySlots:
        _check_date(date)
        slots = AvailabilitySlots(date=date, time_slots=list(time_slots), updated_at=utc_now())
        await self.collection.replace_one(
            {"_id": date},
            {
                "date": slots.date,
                "timeSlots": slots.time_slots,
                "updatedAt": slots.updated_at
            },
            upsert=True
        )
        logger.info(f"Availability updated for {date}: {len(slots.time_slots)} slots")
        return slots


class InMemoryAvailabilityStore(AvailabilityStore):

    def __init__(self):
        self._slots: Dict[str, AvailabilitySlots] = {}

    async def get(self, date: str) -> AvailabilitySlots:
        _check_date(date)
        stored = self._slots.get(date)
        if stored is None:
            return default_availability(date)
        return stored.model_copy(deep=True)

    async def set(self, date: str, time_slots: List[str]) -> AvailabilitySlots:
        _check_date(date)
        slots = AvailabilitySlots(date=date, time_slots=list(time_slots), updated_at=utc_now())
        self._slots[date] = slots
        logger.info(f"Availability updated for {date}: {len(slots.time_slots)} slots")
        return slots.model_copy(deep=True)
