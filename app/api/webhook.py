"""
app/api/webhook.py

Purpose: Twilio inbound SMS webhook

- Receives employee replies as Twilio form data
- Passes them to the reply resolver
- Always answers 200 with an empty TwiML document, whatever happened,
  so Twilio never retries a reply that was already handled
"""

from fastapi import APIRouter, Form, Request
from fastapi.responses import Response
from typing import Optional

from app.api.deps import get_container
from app.core.logging import get_logger
from app.schemas.webhook import parse_twilio_message
from utils.constants import EMPTY_TWIML_RESPONSE
from utils.validation_utils import sanitize_input

logger = get_logger(__name__)
router = APIRouter()


def twiml_ack() -> Response:
    return Response(content=EMPTY_TWIML_RESPONSE, media_type="application/xml")


@router.post("/sms-webhook")
async def sms_webhook(
    request: Request,
    From: Optional[str] = Form(None),
    Body: Optional[str] = Form(None),
    MessageSid: Optional[str] = Form(None),
):
    """
    Inbound SMS endpoint configured as the Twilio messaging webhook.
    """
    try:
        message = parse_twilio_message(
            from_number=From,
            body=sanitize_input(Body or ""),
            message_sid=MessageSid
        )
        logger.info(f"📱 SMS received from {message.phone}: {message.text[:50]}")

        if not message.phone:
            logger.warning("Webhook call without a From number, ignoring")
            return twiml_ack()

        resolver = get_container(request).resolver
        result = await resolver.handle_reply(message.phone, message.text)
        logger.info(
            f"Reply handled: outcome={result.outcome.value}, "
            f"booking={result.booking_id}, sent={len(result.notifications)}, "
            f"failed={len(result.failed_notifications)}"
        )

    except Exception as e:
        logger.error(f"Webhook error: {e}", exc_info=True)

    return twiml_ack()


@router.get("/sms-webhook")
async def webhook_verification():
    """
    Webhook verification endpoint (for platforms that require GET verification)
    """
    return {"status": "ok", "message": "Webhook endpoint is active"}
