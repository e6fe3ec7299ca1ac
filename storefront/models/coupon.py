from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, Enum, JSON

from ..db.base import Base
from ..enums import DiscountType
from ..models.base import TimeStampMixin

class Coupon(Base, TimeStampMixin):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, nullable=False, unique=True, index=True)  # Stored upper-case
    description = Column(String, nullable=False)
    discount_type = Column(Enum(DiscountType), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False)  # Either percentage or fixed amount
    min_purchase = Column(Numeric(12, 2), nullable=False, default=0)
    max_discount = Column(Numeric(12, 2), nullable=True)  # Cap for percentage coupons
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    # Advisory scoping, stored and returned but not enforced
    applied_categories = Column(JSON, nullable=True)
    applied_products = Column(JSON, nullable=True)


    def __repr__(self):
        return f'<Coupon(code={self.code}, discount_type={self.discount_type}, discount_amount={self.discount_amount})>'
