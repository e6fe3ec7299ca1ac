import uuid
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from ..core.logging import get_logger
from ..enums import (
    ORDER_STATUS_TRANSITIONS,
    PAYMENT_STATUS_TRANSITIONS,
    OrderStatus,
    PaymentStatus,
    StatusField,
)
from ..exceptions import APIException, InvalidStateException, NotFoundException, UnauthorizedException
from ..models import Order, OrderItem, OrderStatusHistory, User
from ..schemas.order import OrderCreate, OrderStatusUpdate
from ..services.cart_service import CartService
from ..services.coupon_service import CouponService
from ..services.inventory_service import InventoryService
from ..utils.money import ZERO, to_money


logger = get_logger(__name__)


def compute_grand_total(total_amount: Decimal, discount_amount: Decimal, shipping_fee: Decimal, tax: Decimal) -> Decimal:
    """max(0, total - discount) + shipping + tax, in cents"""
    discounted = max(ZERO, to_money(total_amount) - to_money(discount_amount))
    return to_money(discounted + to_money(shipping_fee) + to_money(tax))


def check_transition(field: StatusField, current, new) -> bool:
    """
    Validate a status move against the transition graph for ``field``.

    Returns False when the status would not change, True for a legal move,
    and raises InvalidStateException otherwise.
    """
    if new == current:
        return False

    transitions = ORDER_STATUS_TRANSITIONS if field == StatusField.ORDER_STATUS else PAYMENT_STATUS_TRANSITIONS
    if new not in transitions.get(current, set()):
        label = field.value.replace("_", " ")
        raise InvalidStateException(f"Cannot change {label} from {current.value} to {new.value}")

    return True


class OrderService:
    def __init__(self):
        self.cart_service = CartService()
        self.coupon_service = CouponService()
        self.inventory_service = InventoryService()

    async def create_order_from_cart(self, user_id: int, order_data: OrderCreate, db: AsyncSession) -> Order:
        """
        Turn the user's cart into an order.

        The order, its frozen item copies, the stock decrements, the coupon
        usage count and the cleared cart are committed together; any failure
        rolls the whole unit back.
        """
        try:
            cart = await self.cart_service.get_cart(user_id, db, for_update=True)

            if not cart or not cart.items:
                raise InvalidStateException("Cart is empty")

            total_amount = CartService.calculate_total(cart)
            discount_amount = to_money(cart.coupon_discount_amount) if cart.coupon_code else ZERO
            shipping_fee = to_money(order_data.shipping_fee)
            tax = to_money(order_data.tax)

            new_order = Order(
                order_number=f"ORD-{uuid.uuid4().hex[:10].upper()}",
                owner_id=user_id,
                order_status=OrderStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
                shipping_address=order_data.shipping_address.model_dump(),
                payment_method=order_data.payment_method,
                total_amount=total_amount,
                discount_amount=discount_amount,
                coupon_code=cart.coupon_code,
                shipping_fee=shipping_fee,
                tax=tax,
                grand_total=compute_grand_total(total_amount, discount_amount, shipping_fee, tax),
                items=[
                    OrderItem(
                        product_id=item.product_id,
                        quantity=item.quantity,
                        unit_price=to_money(item.unit_price),
                    )
                    for item in cart.items
                ],
            )

            db.add(new_order)
            await db.flush()  # Get the order ID without committing

            await self.inventory_service.decrement_stock(
                ((item.product_id, item.quantity) for item in cart.items),
                new_order.id,
                db,
            )

            if cart.coupon_code:
                await self.coupon_service.redeem_coupon(cart.coupon_code, total_amount, db)

            CartService.reset(cart)

            await db.commit()
            await db.refresh(new_order)

        except APIException:
            await db.rollback()
            raise
        except Exception:
            await db.rollback()
            logger.exception("Error creating order for user %s", user_id)
            raise

        logger.info(
            "Created order %s for user %s: total=%s discount=%s grand_total=%s",
            new_order.order_number, user_id, new_order.total_amount,
            new_order.discount_amount, new_order.grand_total
        )
        return new_order

    async def get_order_by_id(self, order_id: int, db: AsyncSession, for_update: bool = False) -> Order:
        """
        Get order by ID with no ownership check.

        Status changes pass ``for_update`` so the row is locked and re-read
        before its current status is checked.
        """
        if for_update:
            query = (
                select(Order)
                .where(Order.id == order_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            result = await db.execute(query)
            order = result.scalars().first()
        else:
            order = await db.get(Order, order_id)

        if not order:
            raise NotFoundException(f"Order not found with id of {order_id}")

        return order

    @staticmethod
    def ensure_can_access(order: Order, requester: User, action: str = "access") -> None:
        if order.owner_id != requester.id and not requester.is_admin:
            raise UnauthorizedException(f"Not authorized to {action} this order")

    async def get_order(self, order_id: int, requester: User, db: AsyncSession) -> Order:
        """Get an order the requester owns, or any order for admins"""
        order = await self.get_order_by_id(order_id, db)
        self.ensure_can_access(order, requester)
        return order

    async def list_orders(
        self,
        requester: User,
        db: AsyncSession,
        status_filter: Optional[OrderStatus] = None,
        skip: int = 0,
        limit: int = 20
    ) -> List[Order]:
        """Admins see every order, customers only their own. Newest first."""
        query = select(Order)

        if not requester.is_admin:
            query = query.where(Order.owner_id == requester.id)

        if status_filter:
            query = query.where(Order.order_status == status_filter)

        query = query.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip).limit(limit)

        result = await db.execute(query)
        return result.scalars().all()

    def record_status_change(
        self,
        order: Order,
        field: StatusField,
        new_status,
        changed_by_id: Optional[int],
        db: AsyncSession,
        notes: Optional[str] = None
    ) -> None:
        previous_status = getattr(order, field.value)
        setattr(order, field.value, new_status)

        db.add(
            OrderStatusHistory(
                order_id=order.id,
                field=field,
                previous_status=getattr(previous_status, "value", previous_status),
                new_status=new_status.value,
                changed_by_id=changed_by_id,
                notes=notes,
            )
        )

        logger.info(
            "Order %s %s: %s -> %s (by %s)",
            order.order_number, field.value, getattr(previous_status, "value", previous_status),
            new_status.value, changed_by_id
        )

    async def _cancel(self, order: Order, changed_by_id: int, db: AsyncSession, notes: Optional[str] = None) -> None:
        if order.order_status != OrderStatus.PENDING:
            raise InvalidStateException("Cannot cancel order that has been processed")

        await self.inventory_service.increment_stock(
            ((item.product_id, item.quantity) for item in order.items),
            order.id,
            db,
        )
        self.record_status_change(order, StatusField.ORDER_STATUS, OrderStatus.CANCELLED, changed_by_id, db, notes)

    async def cancel_order(
        self,
        order_id: int,
        requester: User,
        db: AsyncSession,
        notes: Optional[str] = None
    ) -> Order:
        """Cancel a pending order and put its items back in stock"""
        order = await self.get_order_by_id(order_id, db, for_update=True)
        self.ensure_can_access(order, requester, action="cancel")

        try:
            await self._cancel(order, requester.id, db, notes)
            await db.commit()
            await db.refresh(order)
        except APIException:
            await db.rollback()
            raise
        except Exception:
            await db.rollback()
            logger.exception("Error cancelling order %s", order_id)
            raise

        return order

    async def update_status(
        self,
        order_id: int,
        status_update: OrderStatusUpdate,
        admin: User,
        db: AsyncSession
    ) -> Order:
        """
        Admin status change. Both fields are validated against their
        transition graphs before either is written; moving an order to
        cancelled restores stock exactly like a cancellation.
        """
        order = await self.get_order_by_id(order_id, db, for_update=True)

        try:
            order_status_changes = False
            payment_status_changes = False

            if status_update.order_status is not None:
                order_status_changes = check_transition(
                    StatusField.ORDER_STATUS, order.order_status, status_update.order_status
                )

            if status_update.payment_status is not None:
                payment_status_changes = check_transition(
                    StatusField.PAYMENT_STATUS, order.payment_status, status_update.payment_status
                )

            if order_status_changes:
                if status_update.order_status == OrderStatus.CANCELLED:
                    await self._cancel(order, admin.id, db, status_update.notes)
                else:
                    self.record_status_change(
                        order, StatusField.ORDER_STATUS, status_update.order_status,
                        admin.id, db, status_update.notes
                    )

            if payment_status_changes:
                self.record_status_change(
                    order, StatusField.PAYMENT_STATUS, status_update.payment_status,
                    admin.id, db, status_update.notes
                )

            await db.commit()
            await db.refresh(order)

        except APIException:
            await db.rollback()
            raise
        except Exception:
            await db.rollback()
            logger.exception("Error updating status of order %s", order_id)
            raise

        return order

    async def get_status_history(self, order_id: int, requester: User, db: AsyncSession) -> List[OrderStatusHistory]:
        order = await self.get_order(order_id, requester, db)
        query = (
            select(OrderStatusHistory)
            .where(OrderStatusHistory.order_id == order.id)
            .order_by(OrderStatusHistory.id)
        )
        result = await db.execute(query)
        return result.scalars().all()
