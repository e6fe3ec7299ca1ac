from sqlalchemy import Column, Enum, Integer, String
from sqlalchemy.orm import relationship

from ..models.base import TimeStampMixin, Base
from ..enums import UserRole


class User(Base, TimeStampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.CUSTOMER, nullable=False)

    # Relationships
    orders = relationship("Order", back_populates="owner")
    cart = relationship("Cart", back_populates="owner", uselist=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
