"""Customer repository - Database operations for customers"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, Customer

logger = logging.getLogger(__name__)


class CustomerRepository:
    """Repository for customer database operations"""

    @staticmethod
    def get_customer_by_id(db: Session, customer_id: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.id == customer_id).first()

    @staticmethod
    def get_customer_by_email(db: Session, email: str) -> Optional[Customer]:
        """Look up by the normalized email dedup key"""
        return db.query(Customer).filter(Customer.email == email).first()

    @staticmethod
    def get_customers(db: Session) -> list[Customer]:
        return db.query(Customer).order_by(Customer.created_at.desc()).all()

    @staticmethod
    def insert_or_get_customer(db: Session, email: str, **customer_data) -> tuple[Customer, bool]:
        """
        Insert a customer keyed by normalized email, or return the existing row.

        The unique constraint on email is the arbiter: concurrent inserts for the
        same email leave exactly one row and every caller receives it.
        Returns (customer, created).
        """
        existing = CustomerRepository.get_customer_by_email(db, email)
        if existing:
            return existing, False

        customer = Customer(email=email, is_active=True, **customer_data)
        db.add(customer)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            existing = CustomerRepository.get_customer_by_email(db, email)
            if existing is None:
                raise
            logger.info(f"Concurrent insert detected for customer email, returning existing {existing.id}")
            return existing, False

        db.refresh(customer)
        return customer, True

    @staticmethod
    def get_customer_bookings(db: Session, customer_id: str) -> list[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.service))
            .filter(Booking.customer_id == customer_id)
            .order_by(Booking.start_time.desc())
            .all()
        )
