from .cart import (
    CartItemCreate,
    CartItemResponse,
    CartItemUpdate,
    CartResponse,
)
from .coupon import (
    CouponApply,
    CouponCreate,
    CouponResponse,
    CouponUpdate,
)
from .order import (
    AddressSchema,
    OrderCreate,
    OrderDetail,
    OrderItemResponse,
    OrderResponse,
    OrderStatusHistoryResponse,
    OrderStatusUpdate,
)
from .payment import (
    PaymentEvent,
    PaymentStatusResponse,
)


__all__ = [
    # cart schemas
    "CartItemCreate",
    "CartItemResponse",
    "CartItemUpdate",
    "CartResponse",

    # coupon schemas
    "CouponApply",
    "CouponCreate",
    "CouponResponse",
    "CouponUpdate",

    # order schemas
    "AddressSchema",
    "OrderCreate",
    "OrderDetail",
    "OrderItemResponse",
    "OrderResponse",
    "OrderStatusHistoryResponse",
    "OrderStatusUpdate",

    # payment schemas
    "PaymentEvent",
    "PaymentStatusResponse",
]
