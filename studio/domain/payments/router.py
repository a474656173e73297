"""Payment router - Provider webhook and amount-due lookup"""

import asyncio
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ... import config
from ...database import get_db
from ...services.notification_service import BookingEventDispatcher, get_event_dispatcher
from ...shared.clock import Clock, get_clock
from ...webhook_security import verify_payment_webhook
from .schemas import AmountDueResponse, PaymentWebhookPayload
from .service import PaymentBridge, outstanding_cents

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_bridge(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> PaymentBridge:
    """Dependency injection for PaymentBridge"""
    return PaymentBridge(db, clock=clock)


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    bridge: PaymentBridge = Depends(get_payment_bridge),
    dispatcher: BookingEventDispatcher = Depends(get_event_dispatcher),
):
    """
    Payment provider callback.

    The body is verified against X-Signature before it is parsed; the
    outcome is then applied through the booking lifecycle.
    """
    raw_body = await verify_payment_webhook(request, config.PAYMENT_WEBHOOK_SECRET)

    try:
        payload = PaymentWebhookPayload.model_validate_json(raw_body)
    except ValidationError as e:
        logger.warning(f"⚠️ Malformed payment webhook payload: {e.error_count()} errors")
        raise HTTPException(status_code=400, detail="Invalid webhook payload") from None

    # Store calls and retry backoff block; keep them off the event loop
    booking = await asyncio.to_thread(bridge.on_payment_outcome, payload.bookingId, payload.outcome.value)
    if bridge.events:
        background_tasks.add_task(dispatcher.dispatch, list(bridge.events))

    return {
        "received": True,
        "bookingId": booking.id,
        "status": booking.status,
        "paymentStatus": booking.payment_status,
    }


@router.get("/bookings/{booking_id}/amount-due", response_model=AmountDueResponse)
def get_amount_due(booking_id: str, bridge: PaymentBridge = Depends(get_payment_bridge)):
    booking, amount = bridge.get_amount_due(booking_id)
    return AmountDueResponse(
        bookingId=booking.id,
        amountDueCents=amount,
        outstandingCents=outstanding_cents(booking),
        totalPriceCents=booking.total_price_cents,
        paymentStatus=booking.payment_status,
    )
