"""Customer domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class CustomerResponse(BaseModel):
    id: str
    firstName: str
    lastName: str
    email: str
    phone: Optional[str] = None
    isActive: bool
    createdAt: Optional[datetime] = None


class PortalBooking(BaseModel):
    """A booking as shown in the customer portal"""

    id: str
    serviceName: str
    appointmentDate: str
    startTime: str
    endTime: str
    status: str
    paymentStatus: str
    totalPriceCents: int
    notes: Optional[str] = None


class PortalStatistics(BaseModel):
    totalBookings: int
    totalSpentCents: int
    upcomingAppointments: int
    completedServices: int


class PortalResponse(BaseModel):
    customer: CustomerResponse
    bookings: list[PortalBooking]
    upcomingAppointments: list[PortalBooking]
    statistics: PortalStatistics
