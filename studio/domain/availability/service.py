"""Availability service - Bookable slot computation"""

import logging
from datetime import date, timedelta

from sqlalchemy.orm import Session

from ...database import with_store_retry
from ...shared.clock import Clock, business_now
from ..catalog.service import CatalogService
from .calendar import generate_slot_grid, intervals_overlap, is_open_day, within_booking_window
from .repository import AvailabilityRepository

logger = logging.getLogger(__name__)


class AvailabilityService:
    """
    Computes the slot grid for a day and marks slots that collide with
    existing pending/confirmed bookings.

    The result is advisory: booking creation re-checks overlap under the
    schedule lock at write time.
    """

    def __init__(self, db: Session, clock: Clock = business_now):
        self.db = db
        self.repo = AvailabilityRepository()
        self.catalog = CatalogService(db)
        self.clock = clock

    @with_store_retry
    def get_available_slots(self, day: date, service_id: str) -> list[dict]:
        service = self.catalog.get_active_service(service_id)
        now = self.clock()

        if day < now.date() or not within_booking_window(day, now.date()) or not is_open_day(day):
            return []

        duration = timedelta(minutes=service.duration_minutes)
        grid = generate_slot_grid(day, service.duration_minutes)
        if not grid:
            return []

        busy = self.repo.get_busy_intervals(self.db, day)

        slots = []
        for slot_start in grid:
            slot_end = slot_start + duration
            available = slot_start > now and not any(
                intervals_overlap(slot_start, slot_end, busy_start, busy_end)
                for busy_start, busy_end in busy
            )
            slots.append({"time": slot_start.strftime("%H:%M"), "available": available})

        logger.debug(
            f"Availability for {day} service={service_id}: "
            f"{sum(1 for s in slots if s['available'])}/{len(slots)} open"
        )
        return slots
