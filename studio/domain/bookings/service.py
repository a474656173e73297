"""Booking service - Appointment lifecycle business logic"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import ADMIN_CAN_CANCEL_PAST, PAYMENT_MAX_FAILURES
from ...database import schedule_lock, with_store_retry
from ...exceptions import ConflictError, InvalidTransitionError, NotFoundError
from ...models import Booking, BookingStatus, PaymentStatus
from ...services.notification_service import BookingEvent, BookingEventType
from ...shared.clock import Clock, business_now
from ...shared.validators import normalize_email
from ..availability.calendar import validate_appointment_window
from ..catalog.service import CatalogService
from ..customers.service import CustomerService
from .repository import BookingRepository
from .schemas import BookingCreate
from .state import (
    PAYMENT_OUTCOME_SOURCES,
    CancelActor,
    PaymentOutcome,
    can_transition,
    is_terminal,
)

logger = logging.getLogger(__name__)


class BookingService:
    """
    Service layer for the booking lifecycle.

    Every successful mutation appends a BookingEvent to ``self.events``
    after its commit; the router hands them to the dispatcher once the
    response is ready.
    """

    def __init__(self, db: Session, clock: Clock = business_now):
        self.db = db
        self.repo = BookingRepository()
        self.catalog = CatalogService(db)
        self.clock = clock
        self.events: list[BookingEvent] = []
        self.admin_can_cancel_past = ADMIN_CAN_CANCEL_PAST
        self.max_payment_failures = PAYMENT_MAX_FAILURES

    def _emit(self, event_type: BookingEventType, booking: Booking, **extra) -> None:
        self.events.append(BookingEvent.from_booking(event_type, booking, **extra))

    def _load_for_update(self, booking_id: str, customer_email: Optional[str] = None) -> Booking:
        """
        Fetch a booking row for mutation.

        When a customer email is given it must match the booking's customer;
        a mismatch is reported as not found.
        """
        booking = self.repo.get_booking_for_update(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")

        if customer_email is not None:
            try:
                email = normalize_email(customer_email)
            except ValueError:
                raise NotFoundError("Booking not found") from None
            if booking.customer is None or booking.customer.email != email:
                logger.warning(f"Customer email mismatch for booking {booking_id}")
                raise NotFoundError("Booking not found")

        return booking

    def _reject(self, booking: Booking, message: str) -> None:
        logger.warning(f"Rejected transition on booking {booking.id} ({booking.status}/{booking.payment_status}): {message}")
        raise InvalidTransitionError(message)

    # ========================================================================
    # QUERIES
    # ========================================================================

    @with_store_retry
    def get_booking(self, booking_id: str) -> Booking:
        booking = self.repo.get_booking_by_id(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    @with_store_retry
    def list_bookings(self, appointment_date: Optional[date] = None, status: Optional[str] = None) -> list[Booking]:
        return self.repo.get_bookings(self.db, appointment_date, status)

    # ========================================================================
    # CREATION
    # ========================================================================

    def submit_booking(self, data: BookingCreate) -> Booking:
        """Public booking flow: upsert the customer, then book the slot"""
        customer = CustomerService(self.db, clock=self.clock).find_or_create_customer(
            data.customerFirstName, data.customerLastName, data.customerEmail, data.customerPhone
        )
        return self.create_booking(customer.id, data.serviceId, data.date, data.time, data.notes)

    @with_store_retry
    def create_booking(
        self,
        customer_id: str,
        service_id: str,
        appointment_date: date,
        start_time: time,
        notes: Optional[str] = None,
    ) -> Booking:
        """
        Book [start, start + duration) for a customer.

        The overlap re-check and the insert share one transaction under the
        day's schedule lock. Price and duration are copied from the service
        so later catalog edits never change an existing booking.
        """
        service = self.catalog.get_active_service(service_id)

        start = datetime.combine(appointment_date, start_time)
        end = start + timedelta(minutes=service.duration_minutes)
        validate_appointment_window(start, end, self.clock())

        customer = CustomerService(self.db, clock=self.clock).get_customer(customer_id)

        with schedule_lock(self.db, appointment_date):
            if self.repo.find_overlapping(self.db, start, end):
                logger.info(f"Slot {start:%Y-%m-%d %H:%M} already taken for service {service_id}")
                raise ConflictError("The selected time slot is no longer available")

            booking = self.repo.create_booking(
                self.db,
                customer_id=customer.id,
                service_id=service.id,
                appointment_date=appointment_date,
                start_time=start,
                end_time=end,
                duration_minutes=service.duration_minutes,
                total_price_cents=service.price_cents,
                notes=notes,
                status=BookingStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
                payment_failures=0,
            )
            self.db.commit()

        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} created for {start:%Y-%m-%d %H:%M}-{end:%H:%M} ({service.name})")
        self._emit(BookingEventType.CREATED, booking)
        return booking

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    @with_store_retry
    def update_status(self, booking_id: str, new_status: str) -> Booking:
        """Administrative status change along the legal transitions only"""
        booking = self._load_for_update(booking_id)
        previous = booking.status

        if not can_transition(previous, new_status):
            self._reject(booking, f"Cannot change booking status from {previous} to {new_status}")

        if new_status == BookingStatus.CANCELLED.value:
            self._check_cancellable(booking, CancelActor.ADMIN)
            booking.cancelled_by = CancelActor.ADMIN.value

        # A confirmed booking never carries a failed payment; it falls back to pay at venue
        if new_status == BookingStatus.CONFIRMED.value and booking.payment_status == PaymentStatus.FAILED.value:
            booking.payment_status = PaymentStatus.PENDING.value

        booking.status = new_status
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Booking {booking.id} status {previous} -> {new_status}")
        self._emit(BookingEventType.STATUS_CHANGED, booking, previous_status=previous)
        return booking

    @with_store_retry
    def record_payment_outcome(self, booking_id: str, outcome: str) -> Booking:
        """
        Apply a payment result reported by the payment provider or an admin.

        succeeded: paid, and a pending booking becomes confirmed. Repeating it
            on a paid booking is a no-op.
        failed: failed, failure count incremented, a confirmed booking drops
            back to pending; too many failures cancel the booking.
        refunded: refunded, and the booking is cancelled whatever its status.
        """
        outcome = PaymentOutcome(outcome)
        booking = self._load_for_update(booking_id)
        previous_status = booking.status
        payment = booking.payment_status

        if payment not in PAYMENT_OUTCOME_SOURCES[outcome]:
            self._reject(booking, f"Cannot record payment {outcome.value} when payment is {payment}")

        if outcome == PaymentOutcome.SUCCEEDED:
            if payment == PaymentStatus.PAID.value:
                logger.info(f"Payment already recorded for booking {booking.id}, ignoring duplicate")
                return booking
            if booking.status == BookingStatus.CANCELLED.value:
                self._reject(booking, "Cannot accept payment for a cancelled booking")

            booking.payment_status = PaymentStatus.PAID.value
            if booking.status == BookingStatus.PENDING.value:
                booking.status = BookingStatus.CONFIRMED.value

        elif outcome == PaymentOutcome.FAILED:
            if is_terminal(booking.status):
                self._reject(booking, f"Cannot record a failed payment on a {booking.status} booking")

            booking.payment_status = PaymentStatus.FAILED.value
            booking.payment_failures = (booking.payment_failures or 0) + 1
            booking.status = BookingStatus.PENDING.value
            if booking.payment_failures >= self.max_payment_failures:
                booking.status = BookingStatus.CANCELLED.value
                booking.cancelled_by = CancelActor.PAYMENT.value
                logger.info(f"Booking {booking.id} cancelled after {booking.payment_failures} failed payments")

        else:
            if payment == PaymentStatus.REFUNDED.value:
                logger.info(f"Refund already recorded for booking {booking.id}, ignoring duplicate")
                return booking

            booking.payment_status = PaymentStatus.REFUNDED.value
            if booking.status != BookingStatus.CANCELLED.value:
                booking.status = BookingStatus.CANCELLED.value
                booking.cancelled_by = CancelActor.PAYMENT.value

        self.db.commit()
        self.db.refresh(booking)

        logger.info(
            f"Payment {outcome.value} recorded for booking {booking.id}: "
            f"{previous_status}/{payment} -> {booking.status}/{booking.payment_status}"
        )
        self._emit(BookingEventType.PAYMENT_RECORDED, booking, previous_status=previous_status)
        return booking

    @with_store_retry
    def reschedule_booking(
        self, booking_id: str, new_start: datetime, customer_email: Optional[str] = None
    ) -> Booking:
        """
        Move a booking to a new start time, keeping its snapshotted duration.

        Customers (identified by ``customer_email``) cannot move an
        appointment that has already started.
        """
        booking = self._load_for_update(booking_id, customer_email)
        now = self.clock()

        if is_terminal(booking.status):
            self._reject(booking, f"Cannot reschedule a {booking.status} booking")
        if customer_email is not None and booking.start_time <= now:
            self._reject(booking, "Appointments that have already started cannot be rescheduled")

        new_end = new_start + timedelta(minutes=booking.duration_minutes)
        validate_appointment_window(new_start, new_end, now)

        previous_start = booking.start_time
        with schedule_lock(self.db, previous_start.date(), new_start.date()):
            if self.repo.find_overlapping(self.db, new_start, new_end, exclude_booking_id=booking.id):
                raise ConflictError("The selected time slot is no longer available")

            booking.appointment_date = new_start.date()
            booking.start_time = new_start
            booking.end_time = new_end
            self.db.commit()

        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} rescheduled {previous_start:%Y-%m-%d %H:%M} -> {new_start:%Y-%m-%d %H:%M}")
        self._emit(BookingEventType.RESCHEDULED, booking, previous_start_time=previous_start)
        return booking

    def _check_cancellable(self, booking: Booking, actor: CancelActor) -> None:
        if booking.start_time <= self.clock():
            if actor == CancelActor.CUSTOMER:
                self._reject(booking, "Appointments that have already started cannot be cancelled")
            if not self.admin_can_cancel_past:
                self._reject(booking, "Past appointments cannot be cancelled")

    @with_store_retry
    def cancel_booking(self, booking_id: str, actor: str, customer_email: Optional[str] = None) -> Booking:
        actor = CancelActor(actor)
        booking = self._load_for_update(booking_id, customer_email)
        previous = booking.status

        if is_terminal(previous):
            self._reject(booking, f"Cannot cancel a {previous} booking")
        self._check_cancellable(booking, actor)

        booking.status = BookingStatus.CANCELLED.value
        booking.cancelled_by = actor.value
        self.db.commit()
        self.db.refresh(booking)

        logger.info(f"Booking {booking.id} cancelled by {actor.value}")
        self._emit(BookingEventType.CANCELLED, booking, previous_status=previous)
        return booking

    @with_store_retry
    def delete_booking(self, booking_id: str) -> None:
        """Hard delete; the emitted event lets the calendar mirror drop its copy"""
        booking = self.repo.get_booking_by_id(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")

        event = BookingEvent.from_booking(BookingEventType.DELETED, booking)
        self.repo.delete_booking(self.db, booking)
        self.db.commit()

        logger.info(f"Booking {booking_id} deleted")
        self.events.append(event)
