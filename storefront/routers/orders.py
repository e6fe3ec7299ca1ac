from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from ..core.dependencies import get_db, get_current_user, get_current_admin
from ..enums import OrderStatus
from ..models import User
from ..schemas.order import (
    OrderCreate,
    OrderDetail,
    OrderResponse,
    OrderStatusHistoryResponse,
    OrderStatusUpdate,
)
from ..services.order_service import OrderService

router = APIRouter()
order_service = OrderService()

@router.post("", response_model=OrderDetail, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    **Create New Order**
    
    Create a new order from the customer's cart.
    
    **Request Body:**
    - **shipping_address**: Complete shipping address details
    - **payment_method**: Payment method (card, paypal, bank_transfer, cash_on_delivery)
    - **shipping_fee**: Shipping fee (default: 0.0)
    - **tax**: Tax amount (default: 0.0)
    
    **Process:**
    1. Validates the cart has items
    2. Copies cart items and their locked prices into the order
    3. Computes grand total = max(0, total - discount) + shipping fee + tax
    4. Takes the ordered quantities out of stock
    5. Clears the customer's cart

    Steps 2-5 succeed or fail together.
    """
    return await order_service.create_order_from_cart(current_user.id, order_data, db)

@router.get("", response_model=List[OrderResponse])
async def get_orders(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    status_filter: Optional[OrderStatus] = Query(None, description="Filter orders by status"),
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(20, ge=1, le=100, description="Items per page")
):
    """
    **Get Orders**
    
    Customers get their own orders, admins get every order. Most recent first.
    """
    skip = (page - 1) * size
    return await order_service.list_orders(current_user, db, status_filter, skip, size)

@router.get("/{order_id}", response_model=OrderDetail)
async def get_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    **Get Order Details**
    
    Only accessible by the customer who placed the order or an admin.
    """
    return await order_service.get_order(order_id, current_user, db)

@router.get("/{order_id}/history", response_model=List[OrderStatusHistoryResponse])
async def get_order_history(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Status changes recorded for an order, oldest first"""
    return await order_service.get_status_history(order_id, current_user, db)

@router.put("/{order_id}", response_model=OrderDetail)
async def update_order_status(
    order_id: int,
    status_update: OrderStatusUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    **Update Order Status** (Admin only)
    
    Sets order status, payment status or both.
    
    **Allowed moves:**
    - order: pending → processing → shipped → delivered, pending → cancelled
    - payment: pending → completed | failed, failed → completed, completed → refunded

    Cancelling through this endpoint restores stock like a regular cancellation.
    """
    return await order_service.update_status(order_id, status_update, admin, db)

@router.delete("/{order_id}", response_model=OrderDetail)
async def cancel_order(
    order_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    **Cancel Order**
    
    Only pending orders can be cancelled, by their owner or an admin.
    The ordered quantities are returned to stock.
    """
    return await order_service.cancel_order(order_id, current_user, db)
