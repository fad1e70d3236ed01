"""Domain-specific exceptions for cart services."""


class CartServiceError(Exception):
    """Base exception for cart services."""
    pass


class ProductNotFoundError(CartServiceError):
    """Raised when a product does not exist or is not for sale."""
    pass


class CartItemNotFoundError(CartServiceError):
    """Raised when a cart line is not in the user's cart."""
    pass


class InvalidQuantityError(CartServiceError):
    """Raised when a requested quantity is not a positive integer."""
    pass
