from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import get_db, get_current_user
from ..models import User
from ..schemas.cart import CartItemCreate, CartItemUpdate, CartResponse
from ..services.cart_service import CartService

router = APIRouter()
cart_service = CartService()

@router.get("", response_model=CartResponse)
async def get_cart(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current user's cart with totals"""
    cart = await cart_service.get_cart(current_user.id, db)
    return cart_service.build_cart_response(cart, current_user.id)

@router.post("/items", response_model=CartResponse)
async def add_item_to_cart(
    item: CartItemCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Add a product to the cart"""
    cart = await cart_service.add_item(current_user.id, item.product_id, item.quantity, db)
    return cart_service.build_cart_response(cart, current_user.id)

@router.put("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: int,
    item: CartItemUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update quantity of a cart item. A quantity of zero removes it."""
    cart = await cart_service.update_item(current_user.id, item_id, item.quantity, db)
    return cart_service.build_cart_response(cart, current_user.id)

@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove an item from the cart"""
    cart = await cart_service.remove_item(current_user.id, item_id, db)
    return cart_service.build_cart_response(cart, current_user.id)

@router.delete("", response_model=CartResponse)
async def clear_cart(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Clear all items from cart"""
    cart = await cart_service.clear_cart(current_user.id, db)
    return cart_service.build_cart_response(cart, current_user.id)
