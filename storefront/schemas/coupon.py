from pydantic import BaseModel, Field, model_validator
from typing import Optional, List
from datetime import datetime

from .common import Money
from ..enums import DiscountType

class CouponBase(BaseModel):
    """Base schema for coupons"""
    code: str = Field(..., min_length=1, max_length=50)
    description: str
    discount_type: DiscountType
    discount_amount: Money = Field(gt=0, description="Percentage or fixed amount")
    min_purchase: Money = Field(0, ge=0, description="Minimum order amount required")
    max_discount: Optional[Money] = Field(None, gt=0, description="Maximum discount for percentage types")
    start_date: datetime
    end_date: datetime
    is_active: bool = True
    usage_limit: Optional[int] = Field(None, gt=0, description="Maximum number of times coupon can be used")
    applied_categories: Optional[List[int]] = None
    applied_products: Optional[List[int]] = None

class CouponCreate(CouponBase):
    """Schema for creating coupons"""

    @model_validator(mode="after")
    def check_dates_and_percentage(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_amount > 100:
            raise ValueError("percentage discount cannot exceed 100")
        return self

CLEARABLE_COUPON_FIELDS = {"max_discount", "usage_limit", "applied_categories", "applied_products"}

class CouponUpdate(BaseModel):
    """Schema for updating coupons"""
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_amount: Optional[Money] = Field(None, gt=0)
    min_purchase: Optional[Money] = Field(None, ge=0)
    max_discount: Optional[Money] = Field(None, gt=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None
    usage_limit: Optional[int] = Field(None, gt=0)
    applied_categories: Optional[List[int]] = None
    applied_products: Optional[List[int]] = None

    @model_validator(mode="after")
    def check_dates(self):
        # Only the optional limits can be cleared with an explicit null
        for field in self.model_fields_set - CLEARABLE_COUPON_FIELDS:
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

class CouponApply(BaseModel):
    """Schema for applying a coupon to the cart"""
    code: str = Field(..., min_length=1)

class CouponResponse(CouponBase):
    """Schema for coupon responses"""
    id: int
    usage_count: int = 0
    created_at: datetime
    updated_at: Optional[datetime] = None
    
    class Config:
        from_attributes = True
