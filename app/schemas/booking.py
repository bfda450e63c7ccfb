"""
app/schemas/booking.py

Purpose: Booking request/response schemas

- Validates the intake payload sent by the booking form
- Shapes intake and listing responses
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List

from app.models.booking import Booking
from utils.validation_utils import normalize_phone_number, validate_phone_number


class BookingRequest(BaseModel):
    """
    Booking form payload (the ``bookingData`` multipart field).
    """

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "customerName": "Alice",
                "phone": "+15551234567",
                "address": "1 Elm St",
                "serviceDate": "2024-06-01",
                "serviceTime": "10:00 AM",
                "lotSize": "0.25 acre",
                "estimatedPrice": "$45"
            }
        },
    )

    customer_name: str = Field(..., alias="customerName", min_length=1)
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    service_date: str = Field(..., alias="serviceDate", min_length=1)
    service_time: str = Field(..., alias="serviceTime", min_length=1)
    lot_size: Optional[str] = Field(default=None, alias="lotSize")
    estimated_price: Optional[str] = Field(default=None, alias="estimatedPrice")
    instructions: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not validate_phone_number(v):
            raise ValueError("phone must contain 10-15 digits with optional leading +")
        return normalize_phone_number(v)

    @field_validator("instructions", "lot_size", "estimated_price")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class BookingCreatedResponse(BaseModel):
    """
    Intake success payload: the assigned ID and both delivery handles.
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    booking_id: str = Field(..., alias="bookingId")
    employee_sid: str = Field(..., alias="employeeSid")
    customer_sid: str = Field(..., alias="customerSid")


class BookingListResponse(BaseModel):
    """
    All bookings partitioned by status, newest first.
    """

    pending: List[Booking] = Field(default_factory=list)
    confirmed: List[Booking] = Field(default_factory=list)
    completed: List[Booking] = Field(default_factory=list)
