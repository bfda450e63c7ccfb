"""
app/flow/reply_resolver.py

Purpose: Turns an employee's SMS reply into a booking transition

- Parses "ACCEPT <code>" replies
- Resolves the code against the pending set (exact first, then partial)
- Confirms through the store's conditional transition
- Decides which notifications go out for every outcome

Matching policy:
    1. Exact: the code equals a pending booking's full ID or its short code.
    2. Partial: only when nothing matched exactly and the code has at least
       MIN_PARTIAL_CODE_LENGTH characters, the code must be contained in the
       full ID.
    Exactly one match confirms. Several matches confirm nothing and ask the
    replier for the full code. The outcome depends only on the code and the
    pending set, never on enumeration order.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from app.core.exceptions import (
    AmbiguousMatchError,
    ConflictError,
    ResourceNotFoundError,
    TransportError,
)
from app.core.logging import get_logger, LogContext
from app.flow.states import BookingStatus, ReplyOutcome
from app.models.booking import Booking
from app.services.booking_store import BookingStore
from app.services.templates import NotificationKind
from app.services.twilio_service import DeliveryHandle, NotificationDispatcher
from utils.booking_id_utils import normalize_code
from utils.constants import DEFAULT_ACCEPT_KEYWORD, MIN_PARTIAL_CODE_LENGTH
from utils.time_utils import utc_now

logger = get_logger(__name__)


@dataclass
class ReplyResult:
    """What one inbound reply did and which notifications went out."""
    outcome: ReplyOutcome
    code: Optional[str] = None
    booking_id: Optional[str] = None
    candidates: List[str] = field(default_factory=list)
    notifications: List[DeliveryHandle] = field(default_factory=list)
    failed_notifications: List[NotificationKind] = field(default_factory=list)


def parse_reply(text: Optional[str], accept_keyword: str = DEFAULT_ACCEPT_KEYWORD):
    """
    Splits a reply into (is_acceptance, code).

    Examples:
        "accept 123456" -> (True, "123456")
        "ACCEPT"        -> (True, None)
        "thanks"        -> (False, None)
    """
    normalized = (text or "").strip().upper()
    if not normalized.startswith(accept_keyword):
        return False, None

    tokens = normalized.split()
    code = normalize_code(tokens[1]) if len(tokens) > 1 else None
    return True, code or None


def match_pending(code: str, pending: Sequence[Booking]) -> Booking:
    """
    Resolves ``code`` to exactly one pending booking.

    Raises:
        ResourceNotFoundError: Nothing matched
        AmbiguousMatchError: More than one booking matched
    """
    exact = [
        booking for booking in pending
        if booking.booking_id.upper() == code or booking.short_code == code
    ]
    matches = exact
    if not exact and len(code) >= MIN_PARTIAL_CODE_LENGTH:
        matches = [booking for booking in pending if code in booking.booking_id.upper()]

    if not matches:
        raise ResourceNotFoundError(f"No pending booking matches {code}", details={"code": code})

    if len(matches) > 1:
        # Newest first so the suggested example is the most recent request
        ordered = sorted(matches, key=lambda b: (b.created_at, b.booking_id), reverse=True)
        codes = [b.short_code for b in ordered]
        if len(set(codes)) < len(codes):
            # Short codes collide; only the full IDs tell them apart
            codes = [b.booking_id for b in ordered]
        raise AmbiguousMatchError(code, codes)

    return matches[0]


class ReplyResolver:
    """
    State machine driven by inbound SMS replies.

    The only transition it can make is pending -> confirmed; every other
    input is acknowledged without a state change.
    """

    def __init__(
        self,
        store: BookingStore,
        dispatcher: NotificationDispatcher,
        accept_keyword: str = DEFAULT_ACCEPT_KEYWORD
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.accept_keyword = accept_keyword.strip().upper()

    async def handle_reply(self, from_number: str, text: str) -> ReplyResult:
        """
        Processes one inbound reply.

        Args:
            from_number: Phone that sent the reply
            text: Raw message body

        Returns:
            ReplyResult describing the outcome and notifications sent
        """
        is_acceptance, code = parse_reply(text, self.accept_keyword)

        if not is_acceptance:
            logger.info(f"Ignoring non-acceptance reply from {from_number}")
            return ReplyResult(outcome=ReplyOutcome.IGNORED)

        with LogContext(phone=from_number, short_code=code or ""):
            if code is None:
                logger.info("Acceptance reply without a booking code")
                return await self._reply_not_found(from_number, code)

            pending = await self.store.list_by_status(BookingStatus.PENDING)
            logger.info(f"Resolving code {code} against {len(pending)} pending bookings")

            try:
                booking = match_pending(code, pending)
            except ResourceNotFoundError:
                return await self._reply_not_found(from_number, code)
            except AmbiguousMatchError as e:
                return await self._reply_ambiguous(from_number, code, e.candidates)

            return await self._confirm(booking, from_number, code)

    async def _confirm(self, booking: Booking, from_number: str, code: str) -> ReplyResult:
        with LogContext(booking_id=booking.booking_id):
            try:
                confirmed = await self.store.transition(
                    booking.booking_id,
                    BookingStatus.PENDING,
                    {
                        "status": BookingStatus.CONFIRMED,
                        "confirmed_at": utc_now(),
                        "confirmed_by": from_number,
                    },
                )
            except (ConflictError, ResourceNotFoundError) as e:
                logger.warning(f"Booking no longer available: {e.message}")
                result = ReplyResult(
                    outcome=ReplyOutcome.UNAVAILABLE,
                    code=code,
                    booking_id=booking.booking_id
                )
                await self._notify(
                    result,
                    from_number,
                    NotificationKind.BOOKING_UNAVAILABLE_TO_EMPLOYEE,
                    booking.template_data()
                )
                return result

            with LogContext(outcome=ReplyOutcome.CONFIRMED.value):
                logger.info(f"✅ Booking confirmed by {from_number}")

            result = ReplyResult(
                outcome=ReplyOutcome.CONFIRMED,
                code=code,
                booking_id=confirmed.booking_id
            )

            # The transition is committed; a failed leg is logged, never undone
            await self._notify(
                result,
                confirmed.phone,
                NotificationKind.BOOKING_CONFIRMED_TO_CUSTOMER,
                confirmed.template_data()
            )
            await self._notify(
                result,
                from_number,
                NotificationKind.BOOKING_CONFIRMED_ACK_TO_EMPLOYEE,
                confirmed.template_data()
            )
            return result

    async def _reply_not_found(self, from_number: str, code: Optional[str]) -> ReplyResult:
        logger.info(f"No pending booking for code {code!r}")
        result = ReplyResult(outcome=ReplyOutcome.NOT_FOUND, code=code)
        await self._notify(
            result,
            from_number,
            NotificationKind.BOOKING_NOT_FOUND_TO_EMPLOYEE,
            {"code": code or "", "accept_keyword": self.accept_keyword}
        )
        return result

    async def _reply_ambiguous(self, from_number: str, code: str, candidates: List[str]) -> ReplyResult:
        logger.warning(f"Code {code} is ambiguous: {', '.join(candidates)}")
        result = ReplyResult(outcome=ReplyOutcome.AMBIGUOUS, code=code, candidates=candidates)
        await self._notify(
            result,
            from_number,
            NotificationKind.BOOKING_AMBIGUOUS_TO_EMPLOYEE,
            {"code": code, "candidates": candidates, "accept_keyword": self.accept_keyword}
        )
        return result

    async def _notify(
        self,
        result: ReplyResult,
        to: str,
        kind: NotificationKind,
        data: Dict[str, Any]
    ):
        try:
            handle = await self.dispatcher.send(to, kind, data)
        except TransportError as e:
            logger.error(f"Failed to send {kind.value} to {to}: {e.message}")
            result.failed_notifications.append(kind)
            return
        result.notifications.append(handle)
