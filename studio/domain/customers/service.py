"""Customer service - Customer directory and portal logic"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...database import with_store_retry
from ...exceptions import NotFoundError
from ...models import ACTIVE_BOOKING_STATUSES, Booking, BookingStatus, Customer, PaymentStatus
from ...shared.clock import Clock, business_now
from ...shared.validators import normalize_email, validate_phone
from .repository import CustomerRepository

logger = logging.getLogger(__name__)


class CustomerService:
    """Service layer for the customer directory"""

    def __init__(self, db: Session, clock: Clock = business_now):
        self.db = db
        self.repo = CustomerRepository()
        self.clock = clock

    @with_store_retry
    def find_or_create_customer(
        self, first_name: str, last_name: str, email: str, phone: Optional[str] = None
    ) -> Customer:
        """
        Return the customer for this email, creating it on first contact.

        An existing record is returned unchanged; the names and phone passed
        here are only used when a new customer is inserted.
        """
        normalized = normalize_email(email)
        customer, created = self.repo.insert_or_get_customer(
            self.db,
            normalized,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            phone=validate_phone(phone),
        )
        if created:
            logger.info(f"New customer created: {customer.id}")
        else:
            logger.debug(f"Returning customer found: {customer.id}")
        return customer

    @with_store_retry
    def get_customer(self, customer_id: str) -> Customer:
        customer = self.repo.get_customer_by_id(self.db, customer_id)
        if not customer:
            raise NotFoundError("Customer not found")
        return customer

    @with_store_retry
    def get_customer_by_email(self, email: str) -> Customer:
        try:
            normalized = normalize_email(email)
        except ValueError:
            raise NotFoundError("Customer not found") from None
        customer = self.repo.get_customer_by_email(self.db, normalized)
        if not customer:
            raise NotFoundError("Customer not found")
        return customer

    @with_store_retry
    def list_customers(self) -> list[Customer]:
        return self.repo.get_customers(self.db)

    @with_store_retry
    def get_portal_summary(self, email: str) -> tuple[Customer, list[Booking], list[Booking], dict]:
        """
        Customer portal data: all bookings, upcoming ones and statistics.

        Upcoming means active (pending/confirmed) and starting after now.
        Total spent counts bookings whose payment has been captured.
        """
        customer = self.get_customer_by_email(email)
        bookings = self.repo.get_customer_bookings(self.db, customer.id)
        now = self.clock()

        upcoming = sorted(
            (b for b in bookings if b.status in ACTIVE_BOOKING_STATUSES and b.start_time > now),
            key=lambda b: b.start_time,
        )
        statistics = {
            "totalBookings": len(bookings),
            "totalSpentCents": sum(
                b.total_price_cents for b in bookings if b.payment_status == PaymentStatus.PAID.value
            ),
            "upcomingAppointments": len(upcoming),
            "completedServices": sum(1 for b in bookings if b.status == BookingStatus.COMPLETED.value),
        }
        return customer, bookings, upcoming, statistics
