"""
Checkout: turn the user's cart into an order.

Everything happens in one transaction. Product rows are locked in id order
so concurrent checkouts touching the same products queue up instead of
deadlocking, and each stock decrement is a conditional UPDATE that refuses
to go below zero. Any failure rolls back the order, its lines, the stock
changes and the cart deletion together.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from apps.cart.models import CartItem
from apps.catalog.models import Product
from apps.catalog.pricing import price_product_line
from apps.notifications.services import notify_order_placed

from ..models import Order, OrderItem, OrderStatus, PaymentStatus
from .exceptions import EmptyCartError, InsufficientStockError

logger = logging.getLogger(__name__)


def _decrement_stock(product: Product, quantity: int) -> None:
    updated = (
        Product.objects
        .filter(pk=product.pk, stock_quantity__gte=quantity)
        .update(stock_quantity=F('stock_quantity') - quantity, updated_at=timezone.now())
    )
    if updated == 0:
        logger.warning("Stock conflict on %s (wanted %s)", product.name, quantity)
        raise InsufficientStockError(product, requested=quantity)


@transaction.atomic
def create_order(*, user, shipping_address: str, payment_method: str) -> Order:
    """
    Place an order for everything in the user's cart.

    Args:
        user: The customer.
        shipping_address: Free-form delivery address.
        payment_method: Tag stored on the order (e.g. 'COD', 'CARD').

    Returns:
        The new Order with status PENDING and payment status PENDING.

    Raises:
        EmptyCartError: The cart has no lines.
        InsufficientStockError: A product cannot cover its line. Nothing
            is written.
    """
    cart_items = list(
        CartItem.objects
        .select_for_update()
        .filter(cart__user=user)
        .order_by('id')
    )
    if not cart_items:
        raise EmptyCartError("Cart is empty")

    products = {
        product.pk: product
        for product in (
            Product.objects
            .select_for_update()
            .filter(pk__in={item.product_id for item in cart_items})
            .order_by('pk')
        )
    }

    # Validate every line before writing anything.
    for item in cart_items:
        product = products[item.product_id]
        if product.stock_quantity < item.quantity:
            logger.warning(
                "Checkout rejected for %s: %s has %s, wanted %s",
                user.email, product.name, product.stock_quantity, item.quantity,
            )
            raise InsufficientStockError(product, requested=item.quantity)

    order = Order.objects.create(
        user=user,
        shipping_address=shipping_address,
        payment_method=payment_method,
        status=OrderStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
    )

    total = Decimal('0.00')
    for item in cart_items:
        product = products[item.product_id]
        line = price_product_line(product, item.quantity)

        OrderItem.objects.create(
            order=order,
            product=product,
            quantity=item.quantity,
            price=product.price,
            free_quantity=line.free_units,
            subtotal=line.total,
        )
        total += line.total

        # Free units leave the shelf too.
        _decrement_stock(product, item.quantity)

    order.total_amount = total
    order.save(update_fields=['total_amount'])

    CartItem.objects.filter(pk__in=[item.pk for item in cart_items]).delete()

    transaction.on_commit(lambda: notify_order_placed(order))

    logger.info(
        "Order #%s placed by %s: %s line(s), total %s",
        order.pk, user.email, len(cart_items), total,
    )
    return order
