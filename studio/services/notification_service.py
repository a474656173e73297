"""
Booking Notification Service
Fans booking lifecycle events out to email and calendar listeners
after the booking transaction has committed
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

import resend

from ..config import BUSINESS_NAME, EMAIL_FROM_ADDRESS, RESEND_API_KEY, STUDIO_NOTIFY_EMAIL
from ..models import Booking, utcnow

logger = logging.getLogger(__name__)


class BookingEventType(str, Enum):
    CREATED = "created"
    STATUS_CHANGED = "status_changed"
    PAYMENT_RECORDED = "payment_recorded"
    RESCHEDULED = "rescheduled"
    CANCELLED = "cancelled"
    DELETED = "deleted"


@dataclass(frozen=True)
class BookingEvent:
    """
    Snapshot of a booking at the moment a mutation committed.

    Listeners only ever see this snapshot, never the ORM row, so an event
    stays usable after the request session is closed or the booking is
    deleted.
    """

    event_type: BookingEventType
    booking_id: str
    status: str
    payment_status: str
    customer_email: str
    customer_name: str
    service_name: str
    start_time: datetime
    end_time: datetime
    total_price_cents: int
    notes: Optional[str] = None
    calendar_event_id: Optional[str] = None
    cancelled_by: Optional[str] = None
    previous_status: Optional[str] = None
    previous_start_time: Optional[datetime] = None
    occurred_at: datetime = field(default_factory=utcnow)

    @classmethod
    def from_booking(cls, event_type: BookingEventType, booking: Booking, **extra) -> "BookingEvent":
        customer = booking.customer
        return cls(
            event_type=event_type,
            booking_id=booking.id,
            status=booking.status,
            payment_status=booking.payment_status,
            customer_email=customer.email if customer else "",
            customer_name=f"{customer.first_name} {customer.last_name}" if customer else "",
            service_name=booking.service.name if booking.service else "",
            start_time=booking.start_time,
            end_time=booking.end_time,
            total_price_cents=booking.total_price_cents,
            notes=booking.notes,
            calendar_event_id=booking.calendar_event_id,
            cancelled_by=booking.cancelled_by,
            **extra,
        )


Listener = Callable[[BookingEvent], Awaitable[None]]


class BookingEventDispatcher:
    """Delivers events to every registered listener; failures are logged, never raised"""

    def __init__(self, listeners: Optional[Iterable[Listener]] = None):
        self.listeners: list[Listener] = list(listeners or [])

    def register(self, listener: Listener) -> None:
        self.listeners.append(listener)

    async def dispatch(self, events: Iterable[BookingEvent]) -> None:
        for event in events:
            for listener in self.listeners:
                name = getattr(listener, "__name__", type(listener).__name__)
                try:
                    await listener(event)
                except Exception as e:
                    logger.error(
                        f"❌ Listener {name} failed for {event.event_type.value} "
                        f"event on booking {event.booking_id}: {e}"
                    )


# ============================================================================
# EMAIL
# ============================================================================

EMAIL_SUBJECTS = {
    BookingEventType.CREATED: "We received your booking request",
    BookingEventType.STATUS_CHANGED: "Your appointment status has changed",
    BookingEventType.PAYMENT_RECORDED: "Payment update for your appointment",
    BookingEventType.RESCHEDULED: "Your appointment has been rescheduled",
    BookingEventType.CANCELLED: "Your appointment has been cancelled",
}


def format_price(cents: int) -> str:
    return f"${cents // 100}.{cents % 100:02d}"


def render_booking_email(event: BookingEvent) -> str:
    """Plain HTML body describing the booking after the event"""
    when = event.start_time.strftime("%A, %B %d, %Y at %I:%M %p")
    lines = [
        f"<p>Hi {event.customer_name},</p>",
        f"<p><strong>{event.service_name}</strong> on {when}</p>",
        f"<p>Status: {event.status.title()} &middot; Payment: {event.payment_status.title()}</p>",
        f"<p>Total: {format_price(event.total_price_cents)}</p>",
    ]
    if event.event_type == BookingEventType.RESCHEDULED and event.previous_start_time:
        previous = event.previous_start_time.strftime("%A, %B %d at %I:%M %p")
        lines.append(f"<p>Previously scheduled for {previous}.</p>")
    lines.append(f"<p>{BUSINESS_NAME}</p>")
    return "\n".join(lines)


class EmailListener:
    """Sends booking emails through Resend"""

    def __init__(
        self,
        api_key: Optional[str] = RESEND_API_KEY,
        from_address: str = EMAIL_FROM_ADDRESS,
        notify_address: Optional[str] = STUDIO_NOTIFY_EMAIL,
        send: Optional[Callable[[dict], dict]] = None,
    ):
        self.api_key = api_key
        self.from_address = from_address
        self.notify_address = notify_address
        self.send = send or resend.Emails.send

    async def __call__(self, event: BookingEvent) -> None:
        subject = EMAIL_SUBJECTS.get(event.event_type)
        if subject is None:
            return

        if not self.api_key:
            logger.info(f"⚠️ RESEND_API_KEY not set, skipping {event.event_type.value} email for {event.booking_id}")
            return

        resend.api_key = self.api_key
        html = render_booking_email(event)

        if event.customer_email:
            logger.info(f"📧 Sending {event.event_type.value} email to {event.customer_email}")
            self.send({"from": self.from_address, "to": [event.customer_email], "subject": subject, "html": html})

        if self.notify_address and event.event_type == BookingEventType.CREATED:
            self.send(
                {
                    "from": self.from_address,
                    "to": [self.notify_address],
                    "subject": f"New booking: {event.service_name} - {event.customer_name}",
                    "html": html,
                }
            )


_dispatcher: Optional[BookingEventDispatcher] = None


def get_event_dispatcher() -> BookingEventDispatcher:
    """Process-wide dispatcher with the email and calendar listeners registered"""
    global _dispatcher
    if _dispatcher is None:
        from .google_calendar_service import GoogleCalendarListener

        _dispatcher = BookingEventDispatcher([EmailListener(), GoogleCalendarListener()])
    return _dispatcher
