"""Booking repository - Database operations for bookings"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import ACTIVE_BOOKING_STATUSES, Booking

logger = logging.getLogger(__name__)


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking_by_id(db: Session, booking_id: str) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.customer), joinedload(Booking.service))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_booking_for_update(db: Session, booking_id: str) -> Optional[Booking]:
        """Row-locked read for lifecycle mutations (no-op lock on SQLite)"""
        return db.query(Booking).filter(Booking.id == booking_id).with_for_update().first()

    @staticmethod
    def get_bookings(
        db: Session, appointment_date: Optional[date] = None, status: Optional[str] = None
    ) -> list[Booking]:
        query = db.query(Booking).options(joinedload(Booking.customer), joinedload(Booking.service))
        if appointment_date:
            query = query.filter(Booking.appointment_date == appointment_date)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.start_time.asc()).all()

    @staticmethod
    def find_overlapping(
        db: Session,
        start_time: datetime,
        end_time: datetime,
        exclude_booking_id: Optional[str] = None,
    ) -> Optional[Booking]:
        """
        First pending/confirmed booking whose [start, end) intersects the
        given interval. Any service counts: there is one provider.
        """
        query = db.query(Booking).filter(
            Booking.appointment_date == start_time.date(),
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            Booking.start_time < end_time,
            Booking.end_time > start_time,
        )
        if exclude_booking_id:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.first()

    @staticmethod
    def create_booking(db: Session, **booking_data) -> Booking:
        """Add a booking to the session; the caller owns the commit"""
        booking = Booking(**booking_data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def delete_booking(db: Session, booking: Booking) -> None:
        db.delete(booking)
