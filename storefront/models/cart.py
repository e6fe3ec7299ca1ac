from sqlalchemy import Column, Integer, ForeignKey, String, Numeric, DateTime
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..models.base import TimeStampMixin
from ..utils.datetime_utils import utc_now

class Cart(Base, TimeStampMixin):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    coupon_code = Column(String, nullable=True)
    coupon_discount_amount = Column(Numeric(12, 2), nullable=True)
    discounted_amount = Column(Numeric(12, 2), nullable=True)
    last_active = Column(DateTime, default=utc_now, onupdate=utc_now)

    # Relationships
    owner = relationship("User", back_populates="cart")
    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
        lazy="selectin",
    )
