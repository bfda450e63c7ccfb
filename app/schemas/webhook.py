"""
app/schemas/webhook.py

Purpose: Inbound SMS webhook payload schema and parser

- Normalizes Twilio form fields into InboundReply
- Ensures predictable request handling
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from utils.time_utils import utc_now


class InboundReply(BaseModel):
    """
    Normalized inbound SMS for internal processing.
    """
    phone: str = Field(..., description="Sender phone number in E.164 format")
    text: str = Field(..., description="Message text content")
    message_id: str = Field(..., description="Unique message identifier")
    timestamp: datetime = Field(default_factory=utc_now)

    class Config:
        json_schema_extra = {
            "example": {
                "phone": "+15557654321",
                "text": "ACCEPT 123456",
                "message_id": "SM1234567890"
            }
        }


def parse_twilio_message(
    from_number: Optional[str],
    body: Optional[str],
    message_sid: Optional[str] = None
) -> InboundReply:
    """
    Parses a Twilio SMS webhook payload.

    Twilio format (form data):
    - From: +15557654321
    - Body: message text
    - MessageSid: SM1234567890
    """
    phone = (from_number or "").strip()

    return InboundReply(
        phone=phone,
        text=body or "",
        message_id=message_sid or f"twilio_{utc_now().timestamp()}",
    )
