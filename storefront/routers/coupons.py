from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from ..core.dependencies import get_db, get_current_user, get_current_admin
from ..models import User
from ..schemas.cart import CartResponse
from ..schemas.coupon import CouponApply, CouponCreate, CouponResponse, CouponUpdate
from ..services.cart_service import CartService
from ..services.coupon_service import CouponService

router = APIRouter()
cart_service = CartService()
coupon_service = CouponService()


@router.post("/apply", response_model=CartResponse)
async def apply_coupon(
    payload: CouponApply,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    **Apply Coupon To Cart**

    Looks the code up case-insensitively, checks it against the current cart
    total and stores the resulting discount on the cart. The discount is fixed
    at this point; later cart changes only move the discounted amount.
    """
    cart = await cart_service.apply_coupon(current_user.id, payload.code, db)
    return cart_service.build_cart_response(cart, current_user.id)


@router.delete("/remove", response_model=CartResponse)
async def remove_coupon(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove coupon from cart. Succeeds even when no coupon is applied."""
    cart = await cart_service.remove_coupon(current_user.id, db)
    return cart_service.build_cart_response(cart, current_user.id)


@router.get("", response_model=List[CouponResponse])
async def list_coupons(
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(50, ge=1, le=100, description="Items per page"),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """List all coupons (Admin only)"""
    skip = (page - 1) * size
    return await coupon_service.list_coupons(db, skip, size)


@router.post("", response_model=CouponResponse, status_code=status.HTTP_201_CREATED)
async def create_coupon(
    coupon_data: CouponCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a coupon (Admin only). The code is stored upper-case."""
    return await coupon_service.create_coupon(coupon_data, db)


@router.get("/{coupon_id}", response_model=CouponResponse)
async def get_coupon(
    coupon_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Get a single coupon (Admin only)"""
    return await coupon_service.get_coupon(coupon_id, db)


@router.put("/{coupon_id}", response_model=CouponResponse)
async def update_coupon(
    coupon_id: int,
    coupon_data: CouponUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Update a coupon (Admin only)"""
    return await coupon_service.update_coupon(coupon_id, coupon_data, db)


@router.delete("/{coupon_id}")
async def delete_coupon(
    coupon_id: int,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a coupon (Admin only)"""
    await coupon_service.delete_coupon(coupon_id, db)
    return {"message": "Coupon deleted", "coupon_id": coupon_id}
