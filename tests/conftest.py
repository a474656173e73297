"""Shared test fixtures and helpers."""

import os

# Configure the app for an isolated in-memory store before anything imports it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
# bcrypt hash of "password"
os.environ["ADMIN_PASSWORD_HASH"] = "$2b$10$92IXUNpkjO0rOQ5byMi.Ye4oKoEa3Ro9llC/.og/at2.uheWG/igi"
os.environ["PAYMENT_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["RESEND_API_KEY"] = ""
os.environ["GOOGLE_CALENDAR_ID"] = ""
os.environ["GOOGLE_CALENDAR_ACCESS_TOKEN"] = ""
os.environ["REDIS_URL"] = ""
os.environ["CLOSED_WEEKDAYS"] = ""
os.environ["BUSINESS_OPEN"] = "09:00"
os.environ["BUSINESS_CLOSE"] = "18:00"
os.environ["SLOT_STEP_MINUTES"] = "30"

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from studio.auth import create_access_token  # noqa: E402
from studio.database import Base, SessionLocal, _engine_options, engine  # noqa: E402
from studio.domain.bookings.service import BookingService  # noqa: E402
from studio.main import app  # noqa: E402
from studio.models import Customer, Service  # noqa: E402
from studio.services.notification_service import BookingEventDispatcher, get_event_dispatcher  # noqa: E402
from studio.shared.clock import get_clock  # noqa: E402

# Saturday morning; every scenario books relative to this instant
NOW = datetime(2024, 6, 1, 10, 0)


def fixed_clock() -> datetime:
    return NOW


class RecordingListener:
    """Collects dispatched events in order."""

    def __init__(self):
        self.events = []

    async def __call__(self, event):
        self.events.append(event)


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def booking_service(db):
    return BookingService(db, clock=fixed_clock)


@pytest.fixture
def file_store(tmp_path):
    """Session factory over a file-backed SQLite store shared by worker threads."""
    url = f"sqlite:///{tmp_path / 'concurrency.db'}"
    file_engine = create_engine(url, **_engine_options(url))
    Base.metadata.create_all(bind=file_engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    file_engine.dispose()


@pytest.fixture
def recorder():
    return RecordingListener()


@pytest.fixture
def client(recorder):
    app.dependency_overrides[get_clock] = lambda: fixed_clock
    app.dependency_overrides[get_event_dispatcher] = lambda: BookingEventDispatcher([recorder])
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "admin", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


def make_service(
    db,
    name: str = "Swedish Massage",
    duration_minutes: int = 90,
    price_cents: int = 12000,
    category: str = "massage",
    is_active: bool = True,
) -> Service:
    """Helper to insert a catalog service."""
    service = Service(
        name=name,
        description=f"{name} session",
        category=category,
        duration_minutes=duration_minutes,
        price_cents=price_cents,
        is_active=is_active,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def make_customer(db, email: str = "jane@example.com", first_name: str = "Jane", last_name: str = "Doe") -> Customer:
    customer = Customer(first_name=first_name, last_name=last_name, email=email)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


def booking_payload(service_id: str, date: str = "2024-06-20", time: str = "14:00", **overrides) -> dict:
    """Public booking request body with sensible defaults."""
    payload = {
        "customerFirstName": "Jane",
        "customerLastName": "Doe",
        "customerEmail": "jane@example.com",
        "customerPhone": "+1 555 010 9999",
        "serviceId": service_id,
        "date": date,
        "time": time,
        "notes": "First visit",
    }
    payload.update(overrides)
    return payload


CONTACT_BODY = {
    "firstName": "Ana",
    "lastName": "Silva",
    "email": "Ana@Example.com",
    "phone": "555 867 5309",
    "inquiryType": "bridal",
    "message": "Do you offer trials for bridal makeup?",
}
