"""
utils/booking_id_utils.py

Purpose: Booking identifier scheme

- Generates time-ordered booking IDs ("BK-1718000000123")
- Derives the short code employees type in SMS replies
- Normalizes human-typed codes for matching
"""

import threading
import time
from typing import Callable, Optional

from utils.constants import DEFAULT_BOOKING_ID_PREFIX, SHORT_CODE_LENGTH


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class BookingIdGenerator:
    """
    Issues booking identifiers of the form ``<PREFIX>-<epoch milliseconds>``.

    IDs are strictly increasing within a process: if two IDs are requested
    in the same millisecond (or the clock steps backwards) the previous
    value is bumped by one.
    """

    def __init__(
        self,
        prefix: str = DEFAULT_BOOKING_ID_PREFIX,
        clock: Optional[Callable[[], int]] = None
    ):
        self.prefix = prefix.strip().upper()
        self._clock = clock or _epoch_millis
        self._last = 0
        self._lock = threading.Lock()

    def new_id(self) -> str:
        with self._lock:
            value = max(self._clock(), self._last + 1)
            self._last = value
        return f"{self.prefix}-{value}"


def short_code(booking_id: str) -> str:
    """
    Returns the short code for a booking ID.

    The code is the last SHORT_CODE_LENGTH characters, i.e. the
    fastest-moving digits of the timestamp.

    Example:
        short_code("BK-1718000123456") -> "123456"
    """
    if not booking_id or len(booking_id) < SHORT_CODE_LENGTH:
        raise ValueError(f"Booking ID too short for a short code: {booking_id!r}")
    return booking_id[-SHORT_CODE_LENGTH:].upper()


def normalize_code(raw: Optional[str]) -> str:
    """Trims and upper-cases a code typed by a human."""
    if not raw:
        return ""
    return raw.strip().upper()

