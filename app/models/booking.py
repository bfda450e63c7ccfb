"""
app/models/booking.py

Purpose: Booking document model

- Customer, address and service slot details
- Lifecycle status and confirmation metadata
- Conversion to and from the MongoDB document shape
"""

from datetime import datetime
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field

from app.flow.states import BookingStatus
from utils.booking_id_utils import short_code
from utils.constants import NOT_PROVIDED
from utils.time_utils import utc_now, ensure_utc


class Booking(BaseModel):
    """
    A customer's service request and its lifecycle state.

    Field aliases are the camelCase names used on the wire and in the
    ``bookings`` collection.
    """

    model_config = ConfigDict(populate_by_name=True)

    booking_id: str = Field(..., alias="bookingId")
    status: BookingStatus = BookingStatus.PENDING
    customer_name: str = Field(..., alias="customerName")
    phone: str
    address: str
    service_date: str = Field(..., alias="serviceDate")
    service_time: str = Field(..., alias="serviceTime")
    lot_size: Optional[str] = Field(default=None, alias="lotSize")
    estimated_price: Optional[str] = Field(default=None, alias="estimatedPrice")
    instructions: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    confirmed_at: Optional[datetime] = Field(default=None, alias="confirmedAt")
    confirmed_by: Optional[str] = Field(default=None, alias="confirmedBy")

    @property
    def short_code(self) -> str:
        return short_code(self.booking_id)

    def to_document(self) -> Dict[str, Any]:
        """Serializes the booking for MongoDB (``_id`` is the booking ID)."""
        doc = self.model_dump(by_alias=True)
        doc["status"] = self.status.value
        doc["_id"] = self.booking_id
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Booking":
        data = dict(doc)
        doc_id = data.pop("_id", None)
        data.setdefault("bookingId", doc_id)
        for key in ("createdAt", "confirmedAt"):
            if isinstance(data.get(key), datetime):
                data[key] = ensure_utc(data[key])
        return cls.model_validate(data)

    def template_data(self) -> Dict[str, Any]:
        """Flat mapping consumed by the SMS templates."""
        return {
            "booking_id": self.booking_id,
            "short_code": self.short_code,
            "customer_name": self.customer_name,
            "phone": self.phone,
            "address": self.address,
            "service_date": self.service_date,
            "service_time": self.service_time,
            "lot_size": self.lot_size or NOT_PROVIDED,
            "estimated_price": self.estimated_price or NOT_PROVIDED,
            "instructions": self.instructions or NOT_PROVIDED,
            "photo_count": len(self.photos),
        }
