"""
Business calendar primitives

Pure functions over naive business-time datetimes: the slot grid, the
half-open overlap test and the bookable-window checks shared by the
availability engine and the booking lifecycle.
"""

from datetime import date, datetime, timedelta

from ...config import (
    BOOKING_WINDOW_DAYS,
    BUSINESS_CLOSE,
    BUSINESS_OPEN,
    CLOSED_WEEKDAYS,
    SLOT_STEP_MINUTES,
)
from ...exceptions import InvalidDateError


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open [start, end) overlap; touching intervals do not overlap"""
    return a_start < b_end and b_start < a_end


def business_window(day: date) -> tuple[datetime, datetime]:
    return datetime.combine(day, BUSINESS_OPEN), datetime.combine(day, BUSINESS_CLOSE)


def is_open_day(day: date) -> bool:
    return day.weekday() not in CLOSED_WEEKDAYS


def within_booking_window(day: date, today: date) -> bool:
    return today <= day <= today + timedelta(days=BOOKING_WINDOW_DAYS)


def generate_slot_grid(day: date, duration_minutes: int, step_minutes: int = SLOT_STEP_MINUTES) -> list[datetime]:
    """
    Candidate start times from opening at a fixed step.

    Only starts whose appointment fits before closing are produced, so a
    service longer than the business window yields no slots.
    """
    open_at, close_at = business_window(day)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=step_minutes)

    slots = []
    slot = open_at
    while slot + duration <= close_at:
        slots.append(slot)
        slot += step
    return slots


def validate_appointment_window(start: datetime, end: datetime, now: datetime) -> None:
    """
    Raise InvalidDateError unless [start, end) is a bookable interval:
    strictly in the future, on an open day inside the booking window and
    within business hours.
    """
    if start <= now:
        raise InvalidDateError("Appointment time must be in the future")

    day = start.date()
    if end.date() != day:
        raise InvalidDateError("Appointment must start and end on the same day")

    if not is_open_day(day):
        raise InvalidDateError(f"The studio is closed on {day.strftime('%A')}s")

    if not within_booking_window(day, now.date()):
        raise InvalidDateError(f"Appointments can be booked at most {BOOKING_WINDOW_DAYS} days ahead")

    open_at, close_at = business_window(day)
    if start < open_at or end > close_at:
        raise InvalidDateError(
            f"Appointment must fit within business hours "
            f"{BUSINESS_OPEN.strftime('%H:%M')}-{BUSINESS_CLOSE.strftime('%H:%M')}"
        )
