"""Payment domain schemas"""

from pydantic import BaseModel

from ..bookings.state import PaymentOutcome


class PaymentWebhookPayload(BaseModel):
    """Outcome notification sent by the payment provider"""

    bookingId: str
    outcome: PaymentOutcome


class AmountDueResponse(BaseModel):
    bookingId: str
    amountDueCents: int
    outstandingCents: int
    totalPriceCents: int
    paymentStatus: str
