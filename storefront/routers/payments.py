from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from ..core.dependencies import get_db, get_current_user
from ..models import User
from ..schemas.payment import PaymentEvent, PaymentStatusResponse
from ..services.payment_service import PaymentService

router = APIRouter()
payment_service = PaymentService()


@router.post("/webhook")
async def handle_payment_webhook(
    event: PaymentEvent,
    x_webhook_secret: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
):
    """
    **Payment Webhook**

    Called by the payment collaborator once a charge succeeds or fails.
    Authenticated with the shared secret in the `X-Webhook-Secret` header.

    - **payment_succeeded**: payment completed, order moves to processing
    - **payment_failed**: payment marked failed, order stays pending
    """
    payment_service.verify_webhook_secret(x_webhook_secret)
    order = await payment_service.handle_event(event, db)
    return {
        "received": True,
        "order_id": order.id,
        "order_status": order.order_status,
        "payment_status": order.payment_status,
    }


@router.get("/status/{order_id}", response_model=PaymentStatusResponse)
async def get_payment_status(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Payment status of an order (owner or admin)"""
    order = await payment_service.get_payment_status(order_id, current_user, db)
    return {
        "order_id": order.id,
        "payment_status": order.payment_status,
        "payment_reference": order.payment_reference,
    }
