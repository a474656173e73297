"""Customer router - Customer portal and admin directory endpoints"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import Booking, Customer
from ...shared.clock import Clock, get_clock
from .schemas import CustomerResponse, PortalBooking, PortalResponse, PortalStatistics
from .service import CustomerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["Customers"])
admin_router = APIRouter(
    prefix="/admin/customers", tags=["Admin Customers"], dependencies=[Depends(require_admin)]
)


def get_customer_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> CustomerService:
    """Dependency injection for CustomerService"""
    return CustomerService(db, clock=clock)


def to_customer_response(customer: Customer) -> CustomerResponse:
    return CustomerResponse(
        id=customer.id,
        firstName=customer.first_name,
        lastName=customer.last_name,
        email=customer.email,
        phone=customer.phone,
        isActive=customer.is_active,
        createdAt=customer.created_at,
    )


def to_portal_booking(booking: Booking) -> PortalBooking:
    return PortalBooking(
        id=booking.id,
        serviceName=booking.service.name if booking.service else "",
        appointmentDate=booking.appointment_date.isoformat(),
        startTime=booking.start_time.strftime("%H:%M"),
        endTime=booking.end_time.strftime("%H:%M"),
        status=booking.status,
        paymentStatus=booking.payment_status,
        totalPriceCents=booking.total_price_cents,
        notes=booking.notes,
    )


@router.get("/portal", response_model=PortalResponse)
def get_customer_portal(
    email: str = Query(..., min_length=3),
    service: CustomerService = Depends(get_customer_service),
):
    """Bookings, upcoming appointments and statistics for a customer"""
    customer, bookings, upcoming, statistics = service.get_portal_summary(email)
    return PortalResponse(
        customer=to_customer_response(customer),
        bookings=[to_portal_booking(b) for b in bookings],
        upcomingAppointments=[to_portal_booking(b) for b in upcoming],
        statistics=PortalStatistics(**statistics),
    )


@admin_router.get("", response_model=list[CustomerResponse])
def list_customers(service: CustomerService = Depends(get_customer_service)):
    return [to_customer_response(c) for c in service.list_customers()]


@admin_router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(customer_id: str, service: CustomerService = Depends(get_customer_service)):
    return to_customer_response(service.get_customer(customer_id))
