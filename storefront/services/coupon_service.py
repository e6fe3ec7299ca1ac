from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from ..core.logging import get_logger
from ..enums import DiscountType
from ..exceptions import ConflictException, InvalidStateException, NotFoundException
from ..models import Coupon
from ..schemas.coupon import CouponCreate, CouponUpdate
from ..utils.datetime_utils import to_naive_utc, utc_now
from ..utils.money import ZERO, to_money


logger = get_logger(__name__)


def is_valid(coupon: Coupon, order_amount: Decimal, now: Optional[datetime] = None) -> bool:
    """
    Decide whether a coupon can be used against an order amount.

    A coupon is valid when it is active, ``now`` falls inside its
    [start_date, end_date] window, its usage limit (if any) is not yet
    reached and the order amount meets the minimum purchase.
    """
    now = to_naive_utc(now) if now else utc_now()

    if not coupon.is_active:
        return False

    if now < to_naive_utc(coupon.start_date) or now > to_naive_utc(coupon.end_date):
        return False

    if coupon.usage_limit is not None and (coupon.usage_count or 0) >= coupon.usage_limit:
        return False

    if to_money(order_amount) < to_money(coupon.min_purchase):
        return False

    return True


def calculate_discount(coupon: Coupon, order_amount: Decimal, now: Optional[datetime] = None) -> Decimal:
    """
    Discount the coupon grants on ``order_amount``; zero when the coupon is not valid.

    The result is rounded to cents and always lies within [0, order_amount].
    """
    order_amount = to_money(order_amount)

    if order_amount <= 0 or not is_valid(coupon, order_amount, now):
        return ZERO

    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = to_money(order_amount * to_money(coupon.discount_amount) / Decimal(100))
        if coupon.max_discount is not None and discount > to_money(coupon.max_discount):
            discount = to_money(coupon.max_discount)
    else:
        discount = to_money(coupon.discount_amount)

    # Never give back more than the order is worth
    return max(ZERO, min(discount, order_amount))


class CouponService:
    async def get_coupon_by_code(self, code: str, db: AsyncSession) -> Coupon:
        """Case-insensitive exact match on the coupon code"""
        query = select(Coupon).where(func.upper(Coupon.code) == code.strip().upper())
        result = await db.execute(query)
        coupon = result.scalars().first()

        if not coupon:
            raise NotFoundException("Invalid coupon code")

        return coupon

    async def redeem_coupon(self, code: str, order_amount: Decimal, db: AsyncSession) -> Coupon:
        """
        Count one use of a coupon inside the caller's checkout transaction.

        The coupon row is locked and re-validated first, so two checkouts
        racing for the last use cannot both get it. Never commits.
        """
        query = (
            select(Coupon)
            .where(func.upper(Coupon.code) == code.strip().upper())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        coupon = result.scalars().first()

        if not coupon or not is_valid(coupon, order_amount):
            raise InvalidStateException("Coupon is expired or invalid for this order")

        coupon.usage_count = (coupon.usage_count or 0) + 1

        logger.info("Redeemed coupon %s: usage %s/%s", coupon.code, coupon.usage_count, coupon.usage_limit)
        return coupon

    async def get_coupon(self, coupon_id: int, db: AsyncSession) -> Coupon:
        coupon = await db.get(Coupon, coupon_id)
        if not coupon:
            raise NotFoundException(f"Coupon not found with id of {coupon_id}")
        return coupon

    async def list_coupons(self, db: AsyncSession, skip: int = 0, limit: int = 50) -> List[Coupon]:
        query = select(Coupon).order_by(Coupon.created_at.desc(), Coupon.id.desc()).offset(skip).limit(limit)
        result = await db.execute(query)
        return result.scalars().all()

    async def _ensure_code_available(self, code: str, db: AsyncSession, exclude_id: Optional[int] = None) -> None:
        query = select(Coupon.id).where(func.upper(Coupon.code) == code)
        if exclude_id is not None:
            query = query.where(Coupon.id != exclude_id)
        result = await db.execute(query)
        if result.scalars().first() is not None:
            raise ConflictException(f"Coupon with code {code} already exists")

    async def create_coupon(self, coupon_data: CouponCreate, db: AsyncSession) -> Coupon:
        """Create a coupon. Codes are stored upper-case so lookups ignore case."""
        code = coupon_data.code.strip().upper()
        await self._ensure_code_available(code, db)

        values = coupon_data.model_dump()
        values["code"] = code
        values["start_date"] = to_naive_utc(values["start_date"])
        values["end_date"] = to_naive_utc(values["end_date"])

        coupon = Coupon(**values)
        db.add(coupon)
        await db.commit()
        await db.refresh(coupon)

        logger.info("Created coupon %s (id=%s)", coupon.code, coupon.id)
        return coupon

    async def update_coupon(self, coupon_id: int, coupon_data: CouponUpdate, db: AsyncSession) -> Coupon:
        """Apply a partial update to a coupon"""
        coupon = await self.get_coupon(coupon_id, db)
        values = coupon_data.model_dump(exclude_unset=True)

        if values.get("code"):
            values["code"] = values["code"].strip().upper()
            await self._ensure_code_available(values["code"], db, exclude_id=coupon.id)

        for field in ("start_date", "end_date"):
            if values.get(field):
                values[field] = to_naive_utc(values[field])

        start_date = values.get("start_date", coupon.start_date)
        end_date = values.get("end_date", coupon.end_date)
        if end_date < start_date:
            raise InvalidStateException("Coupon end date cannot be before its start date")

        discount_type = values.get("discount_type", coupon.discount_type)
        discount_amount = values.get("discount_amount", coupon.discount_amount)
        if discount_type == DiscountType.PERCENTAGE and to_money(discount_amount) > 100:
            raise InvalidStateException("Percentage discount cannot exceed 100")

        for field, value in values.items():
            setattr(coupon, field, value)

        await db.commit()
        await db.refresh(coupon)

        logger.info("Updated coupon %s (id=%s): %s", coupon.code, coupon.id, sorted(values))
        return coupon

    async def delete_coupon(self, coupon_id: int, db: AsyncSession) -> bool:
        coupon = await self.get_coupon(coupon_id, db)
        await db.delete(coupon)
        await db.commit()

        logger.info("Deleted coupon %s (id=%s)", coupon.code, coupon_id)
        return True
