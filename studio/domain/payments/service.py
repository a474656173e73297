"""Payment bridge - Connects payment provider outcomes to the booking lifecycle"""

import logging

from sqlalchemy.orm import Session

from ...models import Booking, PaymentStatus
from ...shared.clock import Clock, business_now
from ..bookings.service import BookingService

logger = logging.getLogger(__name__)

SETTLED_PAYMENT_STATUSES = (PaymentStatus.PAID.value, PaymentStatus.REFUNDED.value)


def amount_due_cents(booking: Booking) -> int:
    """The price snapshotted at booking time; the provider charges exactly this"""
    return booking.total_price_cents


def outstanding_cents(booking: Booking) -> int:
    """What is still owed: the amount due until the payment is settled"""
    if booking.payment_status in SETTLED_PAYMENT_STATUSES:
        return 0
    return amount_due_cents(booking)


class PaymentBridge:
    """Thin adapter; the lifecycle rules live in BookingService"""

    def __init__(self, db: Session, clock: Clock = business_now):
        self.db = db
        self.bookings = BookingService(db, clock=clock)

    @property
    def events(self):
        return self.bookings.events

    def get_amount_due(self, booking_id: str) -> tuple[Booking, int]:
        booking = self.bookings.get_booking(booking_id)
        return booking, amount_due_cents(booking)

    def on_payment_outcome(self, booking_id: str, outcome: str) -> Booking:
        logger.info(f"💳 Payment outcome '{outcome}' received for booking {booking_id}")
        return self.bookings.record_payment_outcome(booking_id, outcome)
