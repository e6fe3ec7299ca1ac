from pydantic import BaseModel
from typing import Optional

from ..enums import PaymentEventType, PaymentStatus


class PaymentEvent(BaseModel):
    """Callback body sent by the payment collaborator once a charge settles"""
    event: PaymentEventType
    order_id: int
    payment_reference: Optional[str] = None


class PaymentStatusResponse(BaseModel):
    order_id: int
    payment_status: PaymentStatus
    payment_reference: Optional[str] = None
