"""Bundle pricing for a single cart or order line.

A bundle offer sells ``buy + free`` units for ``bundle_price``. Full bundles
are charged at the bundle price; any remainder is charged at the plain unit
price. Lines shorter than one bundle get no discount at all.

All money is ``Decimal``. Floats are refused so that rounding drift can
never reach an order total.
"""

from decimal import Decimal
from typing import NamedTuple, Optional


class LinePrice(NamedTuple):
    """Result of pricing one line."""

    total: Decimal
    free_units: int


def _as_money(value, field: str) -> Decimal:
    if isinstance(value, float):
        raise TypeError(f"{field} must be a Decimal, not float")
    if isinstance(value, bool) or not isinstance(value, (Decimal, int)):
        raise TypeError(f"{field} must be a Decimal")
    return Decimal(value)


def _positive_int(value) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return None
    return value


def calculate_line_price(
    quantity: int,
    unit_price: Decimal,
    is_bundle_offer: bool = False,
    buy_quantity: Optional[int] = None,
    free_quantity: Optional[int] = None,
    bundle_price: Optional[Decimal] = None,
) -> LinePrice:
    """Price ``quantity`` units of one product.

    Args:
        quantity: Units ordered, free units included. Must be positive.
        unit_price: Regular price of one unit.
        is_bundle_offer: Whether the offer is switched on.
        buy_quantity: Paid units per bundle.
        free_quantity: Free units per bundle.
        bundle_price: Price of one whole bundle.

    Returns:
        LinePrice(total, free_units)

    Raises:
        TypeError: A money argument is a float or not numeric.
        ValueError: quantity is not a positive integer.

    Example:
        buy 10, get 2 free, bundle 50.00, unit 10.00:
        12 units -> 50.00 (2 free), 13 -> 60.00 (2 free), 11 -> 110.00 (0 free)
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValueError("quantity must be an integer")
    if quantity <= 0:
        raise ValueError("quantity must be positive")

    unit_price = _as_money(unit_price, 'unit_price')
    plain = LinePrice(total=unit_price * quantity, free_units=0)

    if not is_bundle_offer:
        return plain

    buy = _positive_int(buy_quantity)
    free = _positive_int(free_quantity)
    price = _as_money(bundle_price, 'bundle_price') if bundle_price is not None else None
    if buy is None or free is None or price is None or price <= 0:
        # Half-configured offers sell at the regular price.
        return plain

    unit_size = buy + free
    if quantity < unit_size:
        return plain

    bundles, remainder = divmod(quantity, unit_size)
    return LinePrice(
        total=bundles * price + remainder * unit_price,
        free_units=bundles * free,
    )


def price_product_line(product, quantity: int) -> LinePrice:
    """Price a line using the product's current configuration."""
    return calculate_line_price(
        quantity,
        product.price,
        product.is_bundle_offer,
        product.bundle_buy_quantity,
        product.bundle_free_quantity,
        product.bundle_price,
    )
