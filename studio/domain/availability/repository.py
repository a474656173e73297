"""Availability repository - Reads the provider's occupied intervals"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ACTIVE_BOOKING_STATUSES, Booking


class AvailabilityRepository:
    """Repository for calendar occupancy queries"""

    @staticmethod
    def get_busy_intervals(
        db: Session, day: date, exclude_booking_id: Optional[str] = None
    ) -> list[tuple[datetime, datetime]]:
        """
        Intervals held by pending/confirmed bookings on a day, for every
        service (single provider), ordered by start time.
        """
        query = db.query(Booking.start_time, Booking.end_time).filter(
            Booking.appointment_date == day,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)

        return [(start, end) for start, end in query.order_by(Booking.start_time.asc()).all()]
