"""Domain-specific exceptions for order services."""


class OrdersServiceError(Exception):
    """Base exception for order services."""
    pass


class EmptyCartError(OrdersServiceError):
    """Raised when checking out a cart with no lines."""
    pass


class InsufficientStockError(OrdersServiceError):
    """
    Raised when a product cannot cover the requested quantity.

    Attributes:
        product: The product that ran short.
        requested: Quantity that was asked for, if known.
    """

    def __init__(self, product, requested=None, message=None):
        self.product = product
        self.requested = requested
        super().__init__(message or f"Insufficient stock for product: {product.name}")


class OrderNotFoundError(OrdersServiceError):
    """Raised when an order does not exist or is not visible to the caller."""
    pass


class InvalidOrderStatusError(OrdersServiceError):
    """Raised for an unknown order or payment status value."""
    pass
