"""
utils/validation_utils.py

Purpose: Input validation

- Phone number normalization and validation
- Calendar date validation for availability
- Photo upload type checks
- Input sanitization
"""

import os
import re
from typing import Optional
from datetime import datetime

from utils.constants import ALLOWED_IMAGE_EXTENSIONS, ALLOWED_IMAGE_MIME_TYPES


def normalize_phone_number(phone: str) -> str:
    """
    Strips common separators from a phone number.

    Example:
        "+1 (555) 123-4567" -> "+15551234567"
    """
    if not phone:
        return ""
    return re.sub(r"[\s\-\(\)\.]", "", phone.strip())


def validate_phone_number(phone: str) -> bool:
    """
    Validates a phone number: optional leading +, then 10-15 digits.

    Args:
        phone: Phone number string (separators allowed)

    Returns:
        True if the number is dialable
    """
    if not phone:
        return False

    phone = normalize_phone_number(phone)
    return bool(re.match(r"^\+?\d{10,15}$", phone))


def validate_date_key(date: str) -> bool:
    """
    Validates an availability date key (YYYY-MM-DD).
    """
    if not date:
        return False

    try:
        datetime.strptime(date, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def is_allowed_image(filename: Optional[str], content_type: Optional[str]) -> bool:
    """
    Checks that both the file extension and the declared MIME type are
    common raster image formats.
    """
    if not filename or not content_type:
        return False

    ext = os.path.splitext(filename)[1].lower()
    return ext in ALLOWED_IMAGE_EXTENSIONS and content_type.lower() in ALLOWED_IMAGE_MIME_TYPES


def sanitize_input(text: str, max_length: int = 1000) -> str:
    """
    Sanitizes user input to prevent injection attacks.

    Args:
        text: Input text
        max_length: Maximum allowed length

    Returns:
        Sanitized text
    """
    if not text:
        return ""

    text = text[:max_length]

    # Remove potentially dangerous characters
    text = re.sub(r"[<>{}\[\]]", "", text)

    # Normalize whitespace
    text = " ".join(text.split())

    return text.strip()
