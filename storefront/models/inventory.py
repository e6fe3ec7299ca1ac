from sqlalchemy import Column, Integer, ForeignKey, Enum
from sqlalchemy.orm import relationship

from ..db.base import Base
from ..enums import TransactionType
from ..models.base import TimeStampMixin


class InventoryTransaction(Base, TimeStampMixin):
    __tablename__ = "inventory_transactions"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    type = Column(Enum(TransactionType), nullable=False)
    quantity = Column(Integer, nullable=False)
    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)

    # Relationships
    product = relationship("Product", back_populates="inventory_transactions")


    def __repr__(self):
        return f'<Inventory(id={self.id}, product_id={self.product_id}, type={self.type})>'
