from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, Numeric, String
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..models.base import TimeStampMixin


class Product(Base, TimeStampMixin):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    sku = Column(String, nullable=False, unique=True)
    price = Column(Numeric(12, 2), nullable=False)
    sale_price = Column(Numeric(12, 2), nullable=False, default=0)  # 0 means no sale
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    inventory_transactions = relationship("InventoryTransaction", back_populates="product")
    order_items = relationship("OrderItem", back_populates="product")

    @property
    def effective_price(self) -> Decimal:
        """Sale price when one is set, otherwise the list price."""
        if self.sale_price and self.sale_price > 0:
            return self.sale_price
        return self.price


    def __repr__(self):
        return f"<Product(id={self.id}, sku={self.sku}, stock={self.stock})>"
