import html
import re
from typing import Optional

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def validate_and_sanitize_input(value: Optional[str], max_length: int = 500) -> str:
    """
    Validate and sanitize free-text user input (names, booking notes, contact messages).

    Args:
        value: Input string to validate
        max_length: Maximum allowed length

    Returns:
        HTML-escaped string with control characters removed

    Raises:
        ValueError: If input is too long
    """
    if not value:
        return ""

    value = str(value).strip()

    if len(value) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    return CONTROL_CHARS.sub("", html.escape(value, quote=True))
