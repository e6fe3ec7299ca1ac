from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from .common import Money

class CartItemCreate(BaseModel):
    """Schema for adding a product to the cart"""
    product_id: int
    quantity: int = Field(ge=1, default=1)

class CartItemUpdate(BaseModel):
    """Schema for changing a cart item's quantity. Zero or less removes the item."""
    quantity: int

class CartItemResponse(BaseModel):
    """Schema for cart item responses"""
    id: int
    product_id: int
    product_name: Optional[str] = None
    quantity: int
    unit_price: Money
    line_total: Money

class CartResponse(BaseModel):
    """Schema for cart responses"""
    id: Optional[int] = None
    owner_id: int
    items: List[CartItemResponse] = []
    total_amount: Money
    coupon_code: Optional[str] = None
    coupon_discount_amount: Optional[Money] = None
    discounted_amount: Optional[Money] = None
    last_active: Optional[datetime] = None
