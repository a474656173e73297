"""Booking router - Public booking endpoints and admin lifecycle management"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import Booking, BookingStatus
from ...rate_limiter import create_rate_limiter
from ...services.notification_service import BookingEventDispatcher, get_event_dispatcher
from ...shared.clock import Clock, get_clock
from ...shared.validators import parse_date
from .schemas import (
    BookingCreate,
    BookingResponse,
    CustomerCancelRequest,
    CustomerRescheduleRequest,
    PaymentOutcomeRequest,
    RescheduleRequest,
    StatusUpdate,
)
from .service import BookingService
from .state import CancelActor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])
admin_router = APIRouter(
    prefix="/admin/bookings", tags=["Admin Bookings"], dependencies=[Depends(require_admin)]
)

booking_rate_limit = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="bookings")


def get_booking_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, clock=clock)


def to_booking_response(booking: Booking) -> BookingResponse:
    customer = booking.customer
    return BookingResponse(
        bookingId=booking.id,
        customerId=booking.customer_id,
        customerName=f"{customer.first_name} {customer.last_name}" if customer else "",
        customerEmail=customer.email if customer else "",
        serviceId=booking.service_id,
        serviceName=booking.service.name if booking.service else "",
        appointmentDate=booking.appointment_date.isoformat(),
        startTime=booking.start_time.strftime("%H:%M"),
        endTime=booking.end_time.strftime("%H:%M"),
        durationMinutes=booking.duration_minutes,
        status=booking.status,
        paymentStatus=booking.payment_status,
        totalPriceCents=booking.total_price_cents,
        notes=booking.notes,
        cancelledBy=booking.cancelled_by,
        createdAt=booking.created_at,
    )


def queue_events(
    background_tasks: BackgroundTasks, service: BookingService, dispatcher: BookingEventDispatcher
) -> None:
    """Hand committed events to the dispatcher once the response is sent"""
    if service.events:
        background_tasks.add_task(dispatcher.dispatch, list(service.events))


# ============================================================================
# PUBLIC
# ============================================================================


@router.post("", response_model=BookingResponse, status_code=201)
def create_booking(
    data: BookingCreate,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
    dispatcher: BookingEventDispatcher = Depends(get_event_dispatcher),
    _: None = Depends(booking_rate_limit),
):
    """Book a slot; the customer record is created on first booking"""
    booking = service.submit_booking(data)
    queue_events(background_tasks, service, dispatcher)
    return to_booking_response(booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    data: CustomerCancelRequest,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
    dispatcher: BookingEventDispatcher = Depends(get_event_dispatcher),
):
    """Customer cancellation, authorized by the email on the booking"""
    booking = service.cancel_booking(booking_id, CancelActor.CUSTOMER.value, customer_email=data.email)
    queue_events(background_tasks, service, dispatcher)
    return to_booking_response(booking)


@router.post("/{booking_id}/reschedule", response_model=BookingResponse)
def reschedule_booking(
    booking_id: str,
    data: CustomerRescheduleRequest,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
    dispatcher: BookingEventDispatcher = Depends(get_event_dispatcher),
):
    booking = service.reschedule_booking(booking_id, data.new_start, customer_email=data.email)
    queue_events(background_tasks, service, dispatcher)
    return to_booking_response(booking)


@router.put("/{booking_id}", response_model=BookingResponse, dependencies=[Depends(require_admin)])
def update_booking_status(
    booking_id: str,
    data: StatusUpdate,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
    dispatcher: BookingEventDispatcher = Depends(get_event_dispatcher),
):
    """Admin status change (confirm, complete, cancel)"""
    booking = service.update_status(booking_id, data.status.value)
    queue_events(background_tasks, service, dispatcher)
    return to_booking_response(booking)


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("", response_model=list[BookingResponse])
def list_bookings(
    date: Optional[str] = Query(None, description="Calendar day, YYYY-MM-DD"),
    status: Optional[str] = Query(None),
    service: BookingService = Depends(get_booking_service),
):
    try:
        day = parse_date(date) if date else None
        status_value = BookingStatus(status).value if status else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    return [to_booking_response(b) for b in service.list_bookings(day, status_value)]


@admin_router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    return to_booking_response(service.get_booking(booking_id))


@admin_router.post("/{booking_id}/cancel", response_model=BookingResponse)
def admin_cancel_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
    dispatcher: BookingEventDispatcher = Depends(get_event_dispatcher),
):
    booking = service.cancel_booking(booking_id, CancelActor.ADMIN.value)
    queue_events(background_tasks, service, dispatcher)
    return to_booking_response(booking)


@admin_router.post("/{booking_id}/reschedule", response_model=BookingResponse)
def admin_reschedule_booking(
    booking_id: str,
    data: RescheduleRequest,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
    dispatcher: BookingEventDispatcher = Depends(get_event_dispatcher),
):
    booking = service.reschedule_booking(booking_id, data.new_start)
    queue_events(background_tasks, service, dispatcher)
    return to_booking_response(booking)


@admin_router.post("/{booking_id}/payment", response_model=BookingResponse)
def record_payment(
    booking_id: str,
    data: PaymentOutcomeRequest,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
    dispatcher: BookingEventDispatcher = Depends(get_event_dispatcher),
):
    """Record a payment taken outside the online flow (e.g. paid at venue)"""
    booking = service.record_payment_outcome(booking_id, data.outcome.value)
    queue_events(background_tasks, service, dispatcher)
    return to_booking_response(booking)


@admin_router.delete("/{booking_id}")
def delete_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
    dispatcher: BookingEventDispatcher = Depends(get_event_dispatcher),
):
    """Permanently remove a booking"""
    service.delete_booking(booking_id)
    queue_events(background_tasks, service, dispatcher)
    return {"message": "Booking deleted", "bookingId": booking_id}
