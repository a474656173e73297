"""Booking domain schemas - Pydantic models for validation"""

from datetime import date as date_type
from datetime import datetime
from datetime import time as time_type
from typing import Optional

from pydantic import BaseModel, field_validator

from ...models import BookingStatus
from ...shared.validators import normalize_email, parse_date, parse_time, validate_phone
from ...utils.sanitization import validate_and_sanitize_input
from .state import PaymentOutcome


def _parse_date_field(v):
    if isinstance(v, date_type):
        return v
    return parse_date(v)


def _parse_time_field(v):
    if isinstance(v, time_type):
        return v
    return parse_time(v)


class BookingCreate(BaseModel):
    """Public booking request: customer details plus the chosen slot"""

    customerFirstName: str
    customerLastName: str
    customerEmail: str
    customerPhone: Optional[str] = None
    serviceId: str
    date: date_type
    time: time_type
    notes: Optional[str] = None

    @field_validator("customerFirstName", "customerLastName")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = validate_and_sanitize_input(v, max_length=120)
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("customerEmail")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("customerPhone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_phone(v)
        return None

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return _parse_date_field(v)

    @field_validator("time", mode="before")
    @classmethod
    def validate_time(cls, v):
        return _parse_time_field(v)

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v):
        if v:
            return validate_and_sanitize_input(v, max_length=1000) or None
        return None


class StatusUpdate(BaseModel):
    status: BookingStatus


class PaymentOutcomeRequest(BaseModel):
    outcome: PaymentOutcome


class CustomerCancelRequest(BaseModel):
    email: str


class RescheduleRequest(BaseModel):
    """Admin reschedule; the customer variant adds the booking email"""

    newDate: date_type
    newTime: time_type

    @field_validator("newDate", mode="before")
    @classmethod
    def validate_date(cls, v):
        return _parse_date_field(v)

    @field_validator("newTime", mode="before")
    @classmethod
    def validate_time(cls, v):
        return _parse_time_field(v)

    @property
    def new_start(self) -> datetime:
        return datetime.combine(self.newDate, self.newTime)


class CustomerRescheduleRequest(RescheduleRequest):
    email: str


class BookingResponse(BaseModel):
    """Schema for booking response"""

    bookingId: str
    customerId: str
    customerName: str
    customerEmail: str
    serviceId: str
    serviceName: str
    appointmentDate: str
    startTime: str
    endTime: str
    durationMinutes: int
    status: str
    paymentStatus: str
    totalPriceCents: int
    notes: Optional[str] = None
    cancelledBy: Optional[str] = None
    createdAt: Optional[datetime] = None
