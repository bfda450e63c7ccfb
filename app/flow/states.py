"""
app/flow/states.py

Purpose: Defines the booking lifecycle

- Enum for each booking status (pending, confirmed, completed)
- Single source of truth for allowed status transitions
- Outcomes an inbound reply can produce
"""

from enum import Enum
from typing import Dict, List


class BookingStatus(str, Enum):
    """
    Lifecycle status of a booking.
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"


# Allowed transitions. Monotonic: nothing ever moves back to pending.
STATUS_TRANSITIONS: Dict[BookingStatus, List[BookingStatus]] = {
    BookingStatus.PENDING: [
        BookingStatus.CONFIRMED,
    ],
    BookingStatus.CONFIRMED: [
        BookingStatus.COMPLETED,  # Reached outside the SMS flow
    ],
    BookingStatus.COMPLETED: [],
}


class ReplyOutcome(str, Enum):
    """
    What the reply resolver did with one inbound SMS.
    """

    IGNORED = "ignored"            # Not an acceptance reply
    CONFIRMED = "confirmed"        # pending -> confirmed committed
    NOT_FOUND = "not_found"        # No code, or no pending booking matched
    AMBIGUOUS = "ambiguous"        # Code matched several pending bookings
    UNAVAILABLE = "unavailable"    # Lost the race, booking already moved on


def is_valid_transition(from_status: BookingStatus, to_status: BookingStatus) -> bool:
    """
    Checks if a status transition is valid.

    Args:
        from_status: Current status
        to_status: Target status

    Returns:
        True if transition is allowed, False otherwise
    """
    allowed_transitions = STATUS_TRANSITIONS.get(BookingStatus(from_status), [])
    return BookingStatus(to_status) in allowed_transitions
