"""
app/schemas/availability.py

Purpose: Availability schemas

- Date-keyed set of bookable time-slot labels
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.validation_utils import validate_date_key


class AvailabilitySlots(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "date": "2024-06-01",
                "timeSlots": ["8:00 AM", "10:00 AM", "12:00 PM"]
            }
        },
    )

    date: str
    time_slots: List[str] = Field(..., alias="timeSlots")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        if not validate_date_key(v):
            raise ValueError("date must be YYYY-MM-DD")
        return v
