"""Business-time clock shared by availability and booking services"""

from collections.abc import Callable
from datetime import datetime

from ..config import BUSINESS_TIMEZONE

Clock = Callable[[], datetime]


def business_now() -> datetime:
    """Current wall-clock time in the business time zone, as a naive datetime"""
    return datetime.now(BUSINESS_TIMEZONE).replace(tzinfo=None)


def get_clock() -> Clock:
    """Dependency hook so tests can pin the current time"""
    return business_now
