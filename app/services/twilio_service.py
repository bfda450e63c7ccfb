"""
app/services/twilio_service.py

Purpose: Outbound SMS via Twilio

- Renders a template and sends one SMS per call
- Returns a delivery handle (message SID) or raises TransportError
- No retries: callers decide what a failed leg means
"""

import httpx
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional

from pydantic import BaseModel

from app.core.exceptions import TransportError
from app.core.logging import get_logger, LogContext
from app.services.templates import NotificationKind, render_message

logger = get_logger(__name__)


class DeliveryHandle(BaseModel):
    """
    Provider acknowledgement for one queued message.
    """
    sid: str
    status: Optional[str] = None
    to: str
    kind: NotificationKind


class NotificationDispatcher(ABC):
    """
    Sends templated notifications to a phone number.
    """

    def __init__(self, business_name: str = ""):
        self.business_name = business_name

    def render(self, kind: NotificationKind, data: Mapping[str, Any]) -> str:
        return render_message(kind, {"business_name": self.business_name, **data})

    @abstractmethod
    async def send(self, to: str, kind: NotificationKind, data: Mapping[str, Any]) -> DeliveryHandle:
        """
        Sends one message.

        Raises:
            TransportError: Provider rejected the message or was unreachable
        """


class TwilioSmsDispatcher(NotificationDispatcher):
    """Dispatcher backed by the Twilio Messages REST API"""

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: Optional[str],
        business_name: str = "",
        base_url: str = "https://api.twilio.com",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(business_name=business_name)
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.timeout = timeout
        self.messages_url = f"{base_url.rstrip('/')}/2010-04-01/Accounts/{account_sid}/Messages.json"
        self._client = client

    def is_configured(self) -> bool:
        """Check if Twilio is properly configured"""
        return bool(
            self.account_sid
            and self.auth_token
            and self.from_number
            and self.account_sid != "your_twilio_sid"
        )

    async def send(self, to: str, kind: NotificationKind, data: Mapping[str, Any]) -> DeliveryHandle:
        kind = NotificationKind(kind)

        with LogContext(phone=to, kind=kind.value):
            if not self.is_configured():
                logger.error("Twilio is not configured, cannot send SMS")
                raise TransportError("Twilio is not configured", details={"to": to, "kind": kind.value})

            body = self.render(kind, data)
            form = {
                "From": self.from_number,
                "To": to,
                "Body": body
            }

            logger.info(f"📤 Sending {kind.value} SMS to {to}")

            try:
                if self._client is not None:
                    response = await self._post(self._client, form)
                else:
                    async with httpx.AsyncClient() as client:
                        response = await self._post(client, form)
            except httpx.TimeoutException as e:
                logger.error("Twilio API timeout")
                raise TransportError("Twilio API timeout", details={"to": to, "kind": kind.value}) from e
            except httpx.HTTPError as e:
                logger.error(f"Twilio API unreachable: {e}")
                raise TransportError(f"Twilio API unreachable: {e}", details={"to": to, "kind": kind.value}) from e

            if response.status_code not in (200, 201):
                error_code = None
                try:
                    error_code = response.json().get("code")
                except ValueError:
                    pass
                logger.error(f"❌ Twilio API error: {response.status_code} - {response.text}")
                raise TransportError(
                    f"Twilio API error: {response.status_code}",
                    details={
                        "to": to,
                        "kind": kind.value,
                        "status_code": response.status_code,
                        "twilio_code": error_code
                    }
                )

            try:
                result = response.json()
                sid = result["sid"]
            except (ValueError, KeyError, TypeError) as e:
                logger.error(f"❌ Malformed Twilio response: {response.text[:200]}")
                raise TransportError(
                    "Malformed Twilio response",
                    details={"to": to, "kind": kind.value, "status_code": response.status_code}
                ) from e

            logger.info(f"✅ Message sent: SID={sid}")

            return DeliveryHandle(
                sid=sid,
                status=result.get("status"),
                to=to,
                kind=kind
            )

    async def _post(self, client: httpx.AsyncClient, form: Mapping[str, str]) -> httpx.Response:
        return await client.post(
            self.messages_url,
            data=form,
            auth=(self.account_sid, self.auth_token),
            timeout=self.timeout
        )
