"""Shared validation utilities"""

import re
from datetime import date, datetime, time
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def normalize_email(email: str) -> str:
    """
    Normalize an email address for use as the customer dedup key.

    Args:
        email: Email address string

    Returns:
        Trimmed, lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        raise ValueError("Email is required")

    email = email.strip().lower()

    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")

    return email


def validate_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize a phone number.

    Keeps a leading + and strips every other non-digit character.
    Accepts 7 to 15 digits (E.164 upper bound).

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone or not phone.strip():
        return None

    phone = phone.strip()
    prefix = "+" if phone.startswith("+") else ""
    digits = re.sub(r"\D", "", phone)

    if not 7 <= len(digits) <= 15:
        raise ValueError("Phone number must contain 7 to 15 digits")

    return f"{prefix}{digits}"


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD calendar day"""
    try:
        return date.fromisoformat(value.strip())
    except (ValueError, AttributeError):
        raise ValueError("Invalid date format. Expected YYYY-MM-DD") from None


def parse_time(value: str) -> time:
    """Parse a wall-clock time given as HH:MM (24h) or h:MM AM/PM"""
    raw = (value or "").strip().upper()
    for fmt in ("%H:%M", "%I:%M %p", "%I:%M%p"):
        try:
            return datetime.strptime(raw, fmt).time()
        except ValueError:
            continue
    raise ValueError("Invalid time format. Expected HH:MM")
