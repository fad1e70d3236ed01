"""
Cart services.

Quantities are checked against live stock when lines are added or changed.
The check is advisory: stock is only reserved at checkout.
"""

import logging
from decimal import Decimal
from typing import List, NamedTuple

from django.db import transaction

from apps.catalog.models import Product
from apps.catalog.pricing import price_product_line
from apps.orders.services.exceptions import InsufficientStockError

from .exceptions import ProductNotFoundError, CartItemNotFoundError, InvalidQuantityError
from .models import Cart, CartItem

logger = logging.getLogger(__name__)


class CartLine(NamedTuple):
    item: CartItem
    unit_price: Decimal
    subtotal: Decimal
    free_units: int


class CartSummary(NamedTuple):
    cart: Cart
    lines: List[CartLine]
    total: Decimal
    item_count: int


def _validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError("Quantity must be a positive integer")
    return quantity


def _check_stock(product: Product, quantity: int) -> None:
    if quantity > product.stock_quantity:
        raise InsufficientStockError(product, requested=quantity)


def get_or_create_cart(*, user) -> Cart:
    cart, _ = Cart.objects.get_or_create(user=user)
    return cart


@transaction.atomic
def add_item(*, user, product_id, quantity: int) -> CartItem:
    """
    Add a product to the user's cart, merging with an existing line.

    Raises:
        InvalidQuantityError: quantity is not a positive integer.
        ProductNotFoundError: Unknown or inactive product.
        InsufficientStockError: The merged quantity exceeds stock.
    """
    _validate_quantity(quantity)

    try:
        product = Product.objects.get(pk=product_id, is_active=True)
    except Product.DoesNotExist:
        raise ProductNotFoundError("Product not found")

    cart = get_or_create_cart(user=user)
    item = (
        CartItem.objects
        .select_for_update()
        .filter(cart=cart, product=product)
        .first()
    )

    total_quantity = quantity + (item.quantity if item else 0)
    _check_stock(product, total_quantity)

    if item:
        item.quantity = total_quantity
        item.save(update_fields=['quantity'])
    else:
        item = CartItem.objects.create(cart=cart, product=product, quantity=quantity)

    return item


def _get_user_item(user, item_id, *, lock=False) -> CartItem:
    queryset = CartItem.objects.select_related('product')
    if lock:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(pk=item_id, cart__user=user)
    except CartItem.DoesNotExist:
        raise CartItemNotFoundError("Cart item not found")


@transaction.atomic
def update_item(*, user, item_id, quantity: int) -> CartItem:
    """
    Set a line's quantity.

    Raises:
        InvalidQuantityError, CartItemNotFoundError, InsufficientStockError
    """
    _validate_quantity(quantity)
    item = _get_user_item(user, item_id, lock=True)
    _check_stock(item.product, quantity)

    item.quantity = quantity
    item.save(update_fields=['quantity'])
    return item


def remove_item(*, user, item_id) -> None:
    """
    Raises:
        CartItemNotFoundError: The item is not in the user's cart.
    """
    _get_user_item(user, item_id).delete()


def clear_cart(*, user) -> int:
    """Remove every line. Returns the number of lines removed."""
    deleted, _ = CartItem.objects.filter(cart__user=user).delete()
    return deleted


def get_cart_summary(*, user) -> CartSummary:
    """
    Price the cart with the same calculator checkout uses.

    The result is a preview; prices and offers are read again at checkout.
    """
    cart = get_or_create_cart(user=user)
    lines = []
    total = Decimal('0.00')
    item_count = 0

    for item in cart.items.select_related('product'):
        price = price_product_line(item.product, item.quantity)
        lines.append(CartLine(
            item=item,
            unit_price=item.product.price,
            subtotal=price.total,
            free_units=price.free_units,
        ))
        total += price.total
        item_count += item.quantity

    return CartSummary(cart=cart, lines=lines, total=total, item_count=item_count)
