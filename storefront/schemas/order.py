from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime

from .common import Money
from ..enums import OrderStatus, PaymentMethod, PaymentStatus, StatusField
    
class AddressSchema(BaseModel):
    """Schema for shipping addresses"""
    street: str
    city: str
    state: Optional[str] = None
    postal_code: str
    country: str
    phone: Optional[str] = None

class OrderCreate(BaseModel):
    """Schema for creating orders"""
    shipping_address: AddressSchema
    payment_method: PaymentMethod
    shipping_fee: Money = Field(0, ge=0)
    tax: Money = Field(0, ge=0)

class OrderItemResponse(BaseModel):
    """Schema for order item responses"""
    id: int
    product_id: int
    quantity: int
    unit_price: Money
    
    class Config:
        from_attributes = True

class OrderResponse(BaseModel):
    id: int
    order_number: str
    owner_id: int
    order_status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    total_amount: Money
    discount_amount: Money
    coupon_code: Optional[str] = None
    shipping_fee: Money
    tax: Money
    grand_total: Money
    created_at: datetime
    updated_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True

class OrderDetail(OrderResponse):
    """Schema for detailed order responses"""
    shipping_address: AddressSchema
    items: List[OrderItemResponse]
    payment_reference: Optional[str] = None
    
    class Config:
        from_attributes = True

class OrderStatusUpdate(BaseModel):
    """Schema for updating order status. At least one status must be given."""
    order_status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def require_a_status(self):
        if self.order_status is None and self.payment_status is None:
            raise ValueError("Provide order_status, payment_status or both")
        return self

class OrderStatusHistoryResponse(BaseModel):
    id: int
    field: StatusField
    previous_status: str
    new_status: str
    changed_by_id: Optional[int] = None
    changed_at: datetime
    notes: Optional[str] = None

    class Config:
        from_attributes = True
