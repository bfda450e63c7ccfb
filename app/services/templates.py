"""
app/services/templates.py

Purpose: Outbound SMS templates

- One NotificationKind per message the service sends
- Each renderer is a pure function of a data mapping
"""

from enum import Enum
from typing import Any, Callable, Dict, Mapping

from utils.constants import (
    BOOKING_ACK_CUSTOMER_MESSAGE,
    BOOKING_AMBIGUOUS_MESSAGE,
    BOOKING_CODE_MISSING_MESSAGE,
    BOOKING_CONFIRMED_CUSTOMER_MESSAGE,
    BOOKING_CONFIRMED_EMPLOYEE_MESSAGE,
    BOOKING_NOT_FOUND_MESSAGE,
    BOOKING_PHOTOS_LINE,
    BOOKING_REQUEST_EMPLOYEE_MESSAGE,
    BOOKING_UNAVAILABLE_MESSAGE,
    DEFAULT_ACCEPT_KEYWORD,
)


class NotificationKind(str, Enum):
    BOOKING_REQUEST_TO_EMPLOYEE = "booking-request-to-employee"
    BOOKING_ACK_TO_CUSTOMER = "booking-ack-to-customer"
    BOOKING_CONFIRMED_TO_CUSTOMER = "booking-confirmed-to-customer"
    BOOKING_CONFIRMED_ACK_TO_EMPLOYEE = "booking-confirmed-ack-to-employee"
    BOOKING_NOT_FOUND_TO_EMPLOYEE = "booking-not-found-to-employee"
    BOOKING_UNAVAILABLE_TO_EMPLOYEE = "booking-unavailable-to-employee"
    BOOKING_AMBIGUOUS_TO_EMPLOYEE = "booking-ambiguous-to-employee"


def _booking_request(data: Mapping[str, Any]) -> str:
    photo_count = data.get("photo_count", 0)
    photos_line = BOOKING_PHOTOS_LINE.format(count=photo_count) if photo_count else ""
    return BOOKING_REQUEST_EMPLOYEE_MESSAGE.format(
        photos_line=photos_line,
        accept_keyword=data.get("accept_keyword", DEFAULT_ACCEPT_KEYWORD),
        **{k: v for k, v in data.items() if k != "accept_keyword"}
    )


def _booking_ack(data: Mapping[str, Any]) -> str:
    return BOOKING_ACK_CUSTOMER_MESSAGE.format(**data)


def _booking_confirmed(data: Mapping[str, Any]) -> str:
    return BOOKING_CONFIRMED_CUSTOMER_MESSAGE.format(**data)


def _booking_confirmed_ack(data: Mapping[str, Any]) -> str:
    return BOOKING_CONFIRMED_EMPLOYEE_MESSAGE.format(**data)


def _booking_not_found(data: Mapping[str, Any]) -> str:
    code = data.get("code")
    if not code:
        return BOOKING_CODE_MISSING_MESSAGE.format(
            accept_keyword=data.get("accept_keyword", DEFAULT_ACCEPT_KEYWORD)
        )
    return BOOKING_NOT_FOUND_MESSAGE.format(code=code)


def _booking_unavailable(data: Mapping[str, Any]) -> str:
    return BOOKING_UNAVAILABLE_MESSAGE.format(**data)


def _booking_ambiguous(data: Mapping[str, Any]) -> str:
    candidates = list(data.get("candidates", []))
    return BOOKING_AMBIGUOUS_MESSAGE.format(
        code=data["code"],
        count=len(candidates),
        candidates=", ".join(candidates),
        accept_keyword=data.get("accept_keyword", DEFAULT_ACCEPT_KEYWORD),
        example=candidates[0] if candidates else "123456",
    )


TEMPLATES: Dict[NotificationKind, Callable[[Mapping[str, Any]], str]] = {
    NotificationKind.BOOKING_REQUEST_TO_EMPLOYEE: _booking_request,
    NotificationKind.BOOKING_ACK_TO_CUSTOMER: _booking_ack,
    NotificationKind.BOOKING_CONFIRMED_TO_CUSTOMER: _booking_confirmed,
    NotificationKind.BOOKING_CONFIRMED_ACK_TO_EMPLOYEE: _booking_confirmed_ack,
    NotificationKind.BOOKING_NOT_FOUND_TO_EMPLOYEE: _booking_not_found,
    NotificationKind.BOOKING_UNAVAILABLE_TO_EMPLOYEE: _booking_unavailable,
    NotificationKind.BOOKING_AMBIGUOUS_TO_EMPLOYEE: _booking_ambiguous,
}


def render_message(kind: NotificationKind, data: Mapping[str, Any]) -> str:
    """
    Renders the SMS body for ``kind``.

    Raises:
        KeyError: If ``data`` lacks a field the template needs
    """
    return TEMPLATES[NotificationKind(kind)](data)
