"""
Google Calendar Service
Mirrors bookings into the studio's Google Calendar: creates, updates
and deletes events, and stores the event id on the booking
"""

import logging
from typing import Any, Optional

import httpx
from sqlalchemy.orm import Session, sessionmaker

from ..config import BUSINESS_TIMEZONE, GOOGLE_CALENDAR_ACCESS_TOKEN, GOOGLE_CALENDAR_ID
from ..database import SessionLocal
from ..models import Booking, BookingStatus
from .notification_service import BookingEvent, BookingEventType

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"


def build_event_body(event: BookingEvent) -> dict[str, Any]:
    description = f"{event.service_name} with {event.customer_name} ({event.customer_email})"
    if event.notes:
        description += f"\n\nNotes: {event.notes}"
    return {
        "summary": f"{event.service_name} - {event.customer_name}",
        "description": description,
        "start": {"dateTime": event.start_time.isoformat(), "timeZone": BUSINESS_TIMEZONE.key},
        "end": {"dateTime": event.end_time.isoformat(), "timeZone": BUSINESS_TIMEZONE.key},
    }


class GoogleCalendarListener:
    """
    Best-effort calendar mirror.

    Cancelled and deleted bookings remove the event; every other event
    creates it on first sight and updates it afterwards. Does nothing when
    the calendar is not configured.
    """

    def __init__(
        self,
        calendar_id: Optional[str] = GOOGLE_CALENDAR_ID,
        access_token: Optional[str] = GOOGLE_CALENDAR_ACCESS_TOKEN,
        session_factory: sessionmaker = SessionLocal,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.calendar_id = calendar_id
        self.access_token = access_token
        self.session_factory = session_factory
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.calendar_id and self.access_token)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}",
            headers={"Authorization": f"Bearer {self.access_token}"},
            transport=self.transport,
            timeout=10.0,
        )

    async def __call__(self, event: BookingEvent) -> None:
        if not self.enabled:
            logger.debug("ℹ️ Google Calendar not configured, skipping sync")
            return

        removed = event.event_type == BookingEventType.DELETED or event.status == BookingStatus.CANCELLED.value
        if removed:
            if event.calendar_event_id:
                await self.delete_event(event.calendar_event_id)
            return

        if event.calendar_event_id:
            await self.update_event(event.calendar_event_id, event)
        else:
            event_id = await self.create_event(event)
            if event_id:
                self.store_event_id(event.booking_id, event_id)

    async def create_event(self, event: BookingEvent) -> Optional[str]:
        async with self._client() as client:
            response = await client.post("/events", json=build_event_body(event))

        if response.status_code not in (200, 201):
            logger.error(f"❌ Failed to create calendar event: {response.text}")
            return None

        event_id = response.json().get("id")
        logger.info(f"✅ Google Calendar event created: {event_id}")
        return event_id

    async def update_event(self, calendar_event_id: str, event: BookingEvent) -> bool:
        async with self._client() as client:
            response = await client.put(f"/events/{calendar_event_id}", json=build_event_body(event))

        if response.status_code != 200:
            logger.error(f"❌ Failed to update calendar event: {response.text}")
            return False

        logger.info(f"✅ Google Calendar event updated: {calendar_event_id}")
        return True

    async def delete_event(self, calendar_event_id: str) -> bool:
        async with self._client() as client:
            response = await client.delete(f"/events/{calendar_event_id}")

        # 410 Gone means it was already removed
        if response.status_code not in (200, 204, 410):
            logger.error(f"❌ Failed to delete calendar event: {response.text}")
            return False

        logger.info(f"✅ Google Calendar event deleted: {calendar_event_id}")
        return True

    def store_event_id(self, booking_id: str, calendar_event_id: str) -> None:
        db: Session = self.session_factory()
        try:
            booking = db.query(Booking).filter(Booking.id == booking_id).first()
            if not booking:
                logger.warning(f"⚠️ Booking {booking_id} gone before calendar event id could be stored")
                return
            booking.calendar_event_id = calendar_event_id
            db.commit()
        finally:
            db.close()
