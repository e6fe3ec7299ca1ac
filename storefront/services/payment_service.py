import hmac
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Config
from ..core.logging import get_logger
from ..enums import OrderStatus, PaymentEventType, PaymentStatus, StatusField
from ..exceptions import APIException, AuthenticationRequiredException, InvalidStateException
from ..models import Order, User
from ..schemas.payment import PaymentEvent
from ..services.order_service import OrderService, check_transition


logger = get_logger(__name__)


class PaymentService:
    """Applies the external payment collaborator's verdicts to orders."""

    def __init__(self):
        self.order_service = OrderService()

    @staticmethod
    def verify_webhook_secret(provided: Optional[str]) -> None:
        if not provided or not hmac.compare_digest(provided, Config.PAYMENT_WEBHOOK_SECRET):
            logger.warning("Rejected payment webhook call with a missing or wrong secret")
            raise AuthenticationRequiredException("Webhook secret verification failed")

    async def on_payment_confirmed(self, order_id: int, db: AsyncSession, payment_reference: Optional[str] = None) -> Order:
        """
        Mark the order paid. A pending order also moves into processing;
        later fulfilment statuses are left as they are.

        A repeated confirmation for an already paid order changes nothing.
        """
        order = await self.order_service.get_order_by_id(order_id, db, for_update=True)

        try:
            if order.payment_status == PaymentStatus.COMPLETED:
                logger.info("Payment for order %s already confirmed, ignoring", order.order_number)
                return order

            if order.order_status == OrderStatus.CANCELLED:
                raise InvalidStateException("Cannot confirm payment for a cancelled order")

            check_transition(StatusField.PAYMENT_STATUS, order.payment_status, PaymentStatus.COMPLETED)
            # Orders already past pending (e.g. cash on delivery) keep their fulfilment status
            move_to_processing = order.order_status == OrderStatus.PENDING

            if payment_reference:
                order.payment_reference = payment_reference

            self.order_service.record_status_change(
                order, StatusField.PAYMENT_STATUS, PaymentStatus.COMPLETED, None, db, "Payment confirmed"
            )
            if move_to_processing:
                self.order_service.record_status_change(
                    order, StatusField.ORDER_STATUS, OrderStatus.PROCESSING, None, db, "Payment confirmed"
                )

            await db.commit()
            await db.refresh(order)

        except APIException:
            await db.rollback()
            raise
        except Exception:
            await db.rollback()
            logger.exception("Error confirming payment for order %s", order_id)
            raise

        return order

    async def on_payment_failed(self, order_id: int, db: AsyncSession, payment_reference: Optional[str] = None) -> Order:
        """Record a declined charge; the order stays pending so the customer can retry or cancel."""
        order = await self.order_service.get_order_by_id(order_id, db, for_update=True)

        try:
            if order.payment_status == PaymentStatus.FAILED:
                return order

            check_transition(StatusField.PAYMENT_STATUS, order.payment_status, PaymentStatus.FAILED)

            if payment_reference:
                order.payment_reference = payment_reference

            self.order_service.record_status_change(
                order, StatusField.PAYMENT_STATUS, PaymentStatus.FAILED, None, db, "Payment failed"
            )

            await db.commit()
            await db.refresh(order)

        except APIException:
            await db.rollback()
            raise
        except Exception:
            await db.rollback()
            logger.exception("Error recording failed payment for order %s", order_id)
            raise

        return order

    async def handle_event(self, event: PaymentEvent, db: AsyncSession) -> Order:
        logger.info("Payment event %s for order %s", event.event.value, event.order_id)

        if event.event == PaymentEventType.PAYMENT_SUCCEEDED:
            return await self.on_payment_confirmed(event.order_id, db, event.payment_reference)

        return await self.on_payment_failed(event.order_id, db, event.payment_reference)

    async def get_payment_status(self, order_id: int, requester: User, db: AsyncSession) -> Order:
        return await self.order_service.get_order(order_id, requester, db)
