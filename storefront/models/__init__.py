from .cart import Cart
from .cart_item import CartItem
from .coupon import Coupon
from .inventory import InventoryTransaction
from .order import Order
from .order_item import OrderItem
from .order_status_history import OrderStatusHistory
from .product import Product
from .user import User


__all__ = [
    "Cart",
    "CartItem",
    "Coupon",
    "InventoryTransaction",
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "Product",
    "User",
]
