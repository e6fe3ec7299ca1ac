from decimal import Decimal
from typing import Optional, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from ..core.logging import get_logger
from ..models import Cart, CartItem
from ..exceptions import InsufficientStockException, InvalidStateException, NotFoundException
from ..services.coupon_service import CouponService, calculate_discount, is_valid
from ..services.inventory_service import InventoryService
from ..utils.datetime_utils import utc_now
from ..utils.money import ZERO, to_money


logger = get_logger(__name__)


class CartService:
    def __init__(self):
        self.coupon_service = CouponService()
        self.inventory_service = InventoryService()

    @staticmethod
    def calculate_total(cart: Cart) -> Decimal:
        """
        Recompute the cart's derived amounts from its current items.

        The coupon discount stored at apply time is reused as-is; only
        ``discounted_amount`` follows the new total.
        """
        total = sum(
            (to_money(item.unit_price) * item.quantity for item in cart.items),
            ZERO,
        )
        cart.total_amount = to_money(total)

        if cart.coupon_code is not None:
            cart.discounted_amount = cart.total_amount - to_money(cart.coupon_discount_amount)
        else:
            cart.discounted_amount = None

        return cart.total_amount

    @staticmethod
    def reset(cart: Cart) -> None:
        """Empty the cart and drop any applied coupon, keeping the cart row"""
        cart.items.clear()
        cart.coupon_code = None
        cart.coupon_discount_amount = None
        CartService.calculate_total(cart)
        cart.last_active = utc_now()

    async def get_cart(self, user_id: int, db: AsyncSession, for_update: bool = False) -> Optional[Cart]:
        """
        Get a user's cart, or None if they have never added anything.

        ``for_update`` locks the cart row and re-reads it and its items, so a
        checkout sees the cart as committed by any concurrent one.
        """
        query = select(Cart).where(Cart.owner_id == user_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalars().first()

    async def _get_existing_cart(self, user_id: int, db: AsyncSession) -> Cart:
        cart = await self.get_cart(user_id, db)
        if not cart:
            raise NotFoundException("Cart not found")
        return cart

    async def get_or_create_cart(self, user_id: int, db: AsyncSession) -> Cart:
        """Get a user's cart or create one if it doesn't exist"""
        cart = await self.get_cart(user_id, db)

        if not cart:
            cart = Cart(owner_id=user_id, items=[], total_amount=ZERO)
            db.add(cart)
            await db.flush()

        return cart

    @staticmethod
    def _find_item(cart: Cart, item_id: int) -> CartItem:
        for item in cart.items:
            if item.id == item_id:
                return item
        raise NotFoundException("Item not found in cart")

    async def _finish(self, cart: Cart, db: AsyncSession) -> Cart:
        self.calculate_total(cart)
        cart.last_active = utc_now()
        await db.commit()
        return cart

    async def add_item(self, user_id: int, product_id: int, quantity: int, db: AsyncSession) -> Cart:
        """Add a product to the cart, snapshotting its current price"""
        product = await self.inventory_service.get_product(product_id, db)

        if not product.is_active:
            raise InvalidStateException("This product is not available")

        if product.stock < quantity:
            raise InsufficientStockException("Product has insufficient stock")

        cart = await self.get_or_create_cart(user_id, db)

        existing_item = next((item for item in cart.items if item.product_id == product_id), None)

        if existing_item:
            # The combined quantity must still be in stock
            if product.stock < existing_item.quantity + quantity:
                raise InsufficientStockException(
                    f"Not enough stock available. Only {product.stock} left"
                )
            existing_item.quantity += quantity
        else:
            cart.items.append(
                CartItem(
                    product_id=product.id,
                    product=product,
                    quantity=quantity,
                    unit_price=to_money(product.effective_price),
                )
            )

        return await self._finish(cart, db)

    async def update_item(self, user_id: int, item_id: int, quantity: int, db: AsyncSession) -> Cart:
        """Set a cart item's quantity; zero or less removes the item"""
        cart = await self._get_existing_cart(user_id, db)
        item = self._find_item(cart, item_id)

        if quantity <= 0:
            cart.items.remove(item)
            return await self._finish(cart, db)

        product = await self.inventory_service.get_product(item.product_id, db)
        if quantity > product.stock:
            raise InsufficientStockException("Requested quantity exceeds available stock")

        item.quantity = quantity
        return await self._finish(cart, db)

    async def remove_item(self, user_id: int, item_id: int, db: AsyncSession) -> Cart:
        """Remove a product item from cart"""
        cart = await self._get_existing_cart(user_id, db)
        item = self._find_item(cart, item_id)

        cart.items.remove(item)
        return await self._finish(cart, db)

    async def clear_cart(self, user_id: int, db: AsyncSession) -> Cart:
        """Remove all items from a user's cart"""
        cart = await self._get_existing_cart(user_id, db)
        self.reset(cart)
        await db.commit()
        return cart

    async def apply_coupon(self, user_id: int, coupon_code: str, db: AsyncSession) -> Cart:
        """Apply a coupon to the cart, locking in the discount for the current total"""
        coupon = await self.coupon_service.get_coupon_by_code(coupon_code, db)

        cart = await self.get_cart(user_id, db)
        if not cart or not cart.items:
            raise InvalidStateException("Cart is empty")

        cart_total = self.calculate_total(cart)
        now = utc_now()

        if not is_valid(coupon, cart_total, now):
            raise InvalidStateException("Coupon is expired or invalid for this order")

        cart.coupon_code = coupon.code
        cart.coupon_discount_amount = calculate_discount(coupon, cart_total, now)

        await self._finish(cart, db)

        logger.info(
            "Applied coupon %s to cart %s: discount %s on %s",
            coupon.code, cart.id, cart.coupon_discount_amount, cart.total_amount
        )
        return cart

    async def remove_coupon(self, user_id: int, db: AsyncSession) -> Optional[Cart]:
        """Remove a coupon from the cart. Nothing to remove is not an error."""
        cart = await self.get_cart(user_id, db)
        if not cart or cart.coupon_code is None:
            return cart

        cart.coupon_code = None
        cart.coupon_discount_amount = None
        return await self._finish(cart, db)

    @staticmethod
    def build_cart_response(cart: Optional[Cart], user_id: int) -> Dict[str, Any]:
        """Shape a cart (or the absence of one) for the API"""
        if cart is None:
            return {
                "id": None,
                "owner_id": user_id,
                "items": [],
                "total_amount": ZERO,
                "coupon_code": None,
                "coupon_discount_amount": None,
                "discounted_amount": None,
                "last_active": None,
            }

        items = [
            {
                "id": item.id,
                "product_id": item.product_id,
                "product_name": item.product.name if item.product else None,
                "quantity": item.quantity,
                "unit_price": to_money(item.unit_price),
                "line_total": to_money(item.unit_price) * item.quantity,
            }
            for item in cart.items
        ]

        return {
            "id": cart.id,
            "owner_id": cart.owner_id,
            "items": items,
            "total_amount": to_money(cart.total_amount),
            "coupon_code": cart.coupon_code,
            "coupon_discount_amount": cart.coupon_discount_amount,
            "discounted_amount": cart.discounted_amount,
            "last_active": cart.last_active,
        }
