import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base


def generate_id():
    """Generate a unique string identifier"""
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ServiceCategory(str, Enum):
    FACIAL = "facial"
    MASSAGE = "massage"
    MANICURE = "manicure"
    PEDICURE = "pedicure"
    HAIR = "hair"
    MAKEUP = "makeup"
    WAXING = "waxing"
    OTHER = "other"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class ContactStatus(str, Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"
    ARCHIVED = "archived"


# Bookings in these states occupy the provider's calendar
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
        CheckConstraint("price_cents >= 0", name="ck_services_price_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(20), nullable=False, default=ServiceCategory.OTHER.value)
    duration_minutes = Column(Integer, nullable=False)
    price_cents = Column(Integer, nullable=False)  # Current list price, bookings keep a snapshot
    image_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    bookings = relationship("Booking", back_populates="service")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=generate_id)
    first_name = Column(String(120), nullable=False)
    last_name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)  # Stored trimmed + lowercase
    phone = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    bookings = relationship("Booking", back_populates="customer")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_bookings_interval"),
        Index("ix_bookings_day_status", "appointment_date", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    appointment_date = Column(Date, nullable=False)
    # Naive datetimes in the business time zone
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)  # Snapshot of service duration
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    notes = Column(Text, nullable=True)
    total_price_cents = Column(Integer, nullable=False)  # Snapshot of service price
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    payment_failures = Column(Integer, nullable=False, default=0)
    cancelled_by = Column(String(20), nullable=True)  # customer, admin, payment
    calendar_event_id = Column(String(500), nullable=True)  # Set by the calendar mirror
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    customer = relationship("Customer", back_populates="bookings")
    service = relationship("Service", back_populates="bookings")


class Contact(Base):
    __tablename__ = "contacts"

    id = Column(String(36), primary_key=True, default=generate_id)
    first_name = Column(String(120), nullable=False)
    last_name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    inquiry_type = Column(String(120), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=ContactStatus.NEW.value)
    created_at = Column(DateTime, default=utcnow, nullable=False)
