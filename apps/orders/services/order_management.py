"""Order queries and admin-driven status changes."""

import logging

from django.db import transaction
from django.db.models import QuerySet

from apps.notifications.services import notify_order_status_changed

from ..models import Order, OrderStatus, PaymentStatus
from .exceptions import OrderNotFoundError, InvalidOrderStatusError

logger = logging.getLogger(__name__)


def _orders_with_items() -> QuerySet:
    return (
        Order.objects
        .select_related('user')
        .prefetch_related('items__product')
    )


def _lock_order(order_id) -> Order:
    try:
        return Order.objects.select_for_update().get(pk=order_id)
    except Order.DoesNotExist:
        raise OrderNotFoundError(f"Order not found: {order_id}")


@transaction.atomic
def update_order_status(*, order_id, status: str) -> Order:
    """
    Move an order to ``status``.

    Staff may set any valid status; moves that are not forward steps of
    PENDING -> CONFIRMED -> SHIPPED -> DELIVERED (or a cancellation of an
    open order) are allowed but logged as warnings.

    Raises:
        InvalidOrderStatusError: Unknown status value.
        OrderNotFoundError: No such order.
    """
    if status not in OrderStatus.values:
        raise InvalidOrderStatusError(f"Invalid order status: {status}")

    order = _lock_order(order_id)
    previous = order.status

    if previous == status:
        return order

    if not order.can_transition_to(status):
        logger.warning("Order #%s moved %s -> %s outside the normal flow", order.pk, previous, status)

    order.status = status
    order.save(update_fields=['status', 'updated_at'])

    transaction.on_commit(lambda: notify_order_status_changed(order))

    logger.info("Order #%s status %s -> %s", order.pk, previous, status)
    return order


@transaction.atomic
def update_payment_status(*, order_id, payment_status: str) -> Order:
    """
    Raises:
        InvalidOrderStatusError: Unknown payment status value.
        OrderNotFoundError: No such order.
    """
    if payment_status not in PaymentStatus.values:
        raise InvalidOrderStatusError(f"Invalid payment status: {payment_status}")

    order = _lock_order(order_id)
    previous = order.payment_status
    order.payment_status = payment_status
    order.save(update_fields=['payment_status', 'updated_at'])

    logger.info("Order #%s payment %s -> %s", order.pk, previous, payment_status)
    return order


def get_user_orders(*, user) -> QuerySet:
    """The user's orders, newest first."""
    return _orders_with_items().filter(user=user)


def get_order_for_user(*, order_id, user) -> Order:
    """
    Staff can read any order; customers only their own.

    Raises:
        OrderNotFoundError: Missing, or owned by someone else.
    """
    queryset = _orders_with_items()
    if not user.is_staff:
        queryset = queryset.filter(user=user)
    try:
        return queryset.get(pk=order_id)
    except Order.DoesNotExist:
        raise OrderNotFoundError(f"Order not found: {order_id}")


def list_orders(*, status: str = None) -> QuerySet:
    """
    All orders for the admin view, optionally filtered by status.

    Raises:
        InvalidOrderStatusError: Unknown status filter.
    """
    queryset = _orders_with_items()
    if status:
        if status not in OrderStatus.values:
            raise InvalidOrderStatusError(f"Invalid order status: {status}")
        queryset = queryset.filter(status=status)
    return queryset
