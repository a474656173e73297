"""Availability router - Public slot lookup"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.clock import Clock, get_clock
from ...shared.validators import parse_date
from .schemas import AvailabilityResponse, SlotResponse
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["Availability"])


def get_availability_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db, clock=clock)


@router.get("", response_model=AvailabilityResponse)
def get_availability(
    date: str = Query(..., description="Calendar day, YYYY-MM-DD"),
    service_id: str = Query(..., alias="serviceId"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Slot grid for a day with an available flag per slot"""
    try:
        day = parse_date(date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None

    slots = service.get_available_slots(day, service_id)
    return AvailabilityResponse(
        date=day.isoformat(),
        serviceId=service_id,
        slots=[SlotResponse(**slot) for slot in slots],
    )
