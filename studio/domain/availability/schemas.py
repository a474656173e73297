"""Availability domain schemas"""

from pydantic import BaseModel


class SlotResponse(BaseModel):
    time: str  # HH:MM, business time zone
    available: bool


class AvailabilityResponse(BaseModel):
    date: str
    serviceId: str
    slots: list[SlotResponse]
