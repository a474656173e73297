"""
Booking state machine

Status and payment transitions as data. The service layer consults these
tables before mutating a booking; anything not listed is rejected.
"""

from enum import Enum

from ...models import BookingStatus, PaymentStatus


class PaymentOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class CancelActor(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    PAYMENT = "payment"


# Completed and cancelled have no outgoing transitions
STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    BookingStatus.PENDING.value: frozenset({BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value}),
    BookingStatus.CONFIRMED.value: frozenset({BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value}),
    BookingStatus.COMPLETED.value: frozenset(),
    BookingStatus.CANCELLED.value: frozenset(),
}

TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value})

# Payment states from which an outcome may be recorded
PAYMENT_OUTCOME_SOURCES: dict[PaymentOutcome, frozenset[str]] = {
    PaymentOutcome.SUCCEEDED: frozenset({PaymentStatus.PENDING.value, PaymentStatus.FAILED.value, PaymentStatus.PAID.value}),
    PaymentOutcome.FAILED: frozenset({PaymentStatus.PENDING.value, PaymentStatus.FAILED.value}),
    PaymentOutcome.REFUNDED: frozenset(
        {PaymentStatus.PENDING.value, PaymentStatus.PAID.value, PaymentStatus.FAILED.value, PaymentStatus.REFUNDED.value}
    ),
}


def can_transition(current: str, target: str) -> bool:
    return target in STATUS_TRANSITIONS.get(current, frozenset())


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES
