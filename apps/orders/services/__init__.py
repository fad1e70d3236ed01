"""Services for order business logic."""

from .exceptions import (
    OrdersServiceError,
    EmptyCartError,
    InsufficientStockError,
    OrderNotFoundError,
    InvalidOrderStatusError,
)
from .checkout import create_order
from .order_management import (
    update_order_status,
    update_payment_status,
    get_user_orders,
    get_order_for_user,
    list_orders,
)

__all__ = [
    # Exceptions
    'OrdersServiceError',
    'EmptyCartError',
    'InsufficientStockError',
    'OrderNotFoundError',
    'InvalidOrderStatusError',
    # Checkout
    'create_order',
    # Management
    'update_order_status',
    'update_payment_status',
    'get_user_orders',
    'get_order_for_user',
    'list_orders',
]
