"""
Celery tasks that deliver store emails.

Every task is gated by a toggle in ``settings.NOTIFICATIONS`` and never
raises on delivery problems: failures are logged and reported through the
return value. Tasks receive primary keys, not model instances, and reload
what they need.
"""

import logging

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.utils.html import format_html, format_html_join

logger = logging.getLogger(__name__)


def _enabled(flag: str) -> bool:
    return bool(settings.NOTIFICATIONS.get(flag, False))


def _send(*, to: str, subject: str, text: str, html: str = None, kind: str) -> bool:
    try:
        send_mail(
            subject=subject,
            message=text,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[to],
            html_message=html,
            fail_silently=False,
        )
    except Exception:
        logger.exception("[EMAIL FAILED] %s to %s", kind, to)
        return False

    logger.info("[EMAIL SENT] %s to %s", kind, to)
    return True


def _order_lines_text(order):
    return "\n".join(
        f"  {item.product.name} x {item.quantity}"
        + (f" (+{item.free_quantity} free)" if item.free_quantity else "")
        + f"  {item.subtotal}"
        for item in order.items.all()
    )


def _order_lines_html(order):
    return format_html_join(
        '',
        '<tr><td>{}</td><td>{}</td><td>{}</td><td>{}</td></tr>',
        (
            (item.product.name, item.quantity, item.free_quantity, item.subtotal)
            for item in order.items.all()
        ),
    )


def _load_order(order_id):
    from apps.orders.models import Order

    try:
        return (
            Order.objects
            .select_related('user')
            .prefetch_related('items__product')
            .get(pk=order_id)
        )
    except Order.DoesNotExist:
        logger.warning("Notification skipped: order %s no longer exists", order_id)
        return None


# =============================================================================
# Registration
# =============================================================================

@shared_task(name='notifications.send_otp_email')
def send_otp_email(email, first_name, code, expiry_minutes):
    """Deliver a registration code."""
    if not _enabled('OTP_EMAIL_ENABLED'):
        logger.info("[EMAIL OFF] OTP email skipped for %s", email)
        return False

    greeting = first_name or 'there'
    text = (
        f"Hi {greeting},\n\n"
        f"Your verification code is {code}.\n"
        f"It expires in {expiry_minutes} minutes.\n\n"
        "If you did not try to create an account, ignore this email.\n"
    )
    html = format_html(
        '<p>Hi {},</p><p>Your verification code is <strong>{}</strong>.</p>'
        '<p>It expires in {} minutes.</p>',
        greeting, code, expiry_minutes,
    )
    return _send(to=email, subject='Your verification code', text=text, html=html, kind='OTP')


@shared_task(name='notifications.send_welcome_email')
def send_welcome_email(user_id):
    if not _enabled('CUSTOMER_WELCOME_ENABLED'):
        logger.info("[EMAIL OFF] Welcome email skipped for user %s", user_id)
        return False

    User = get_user_model()
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        logger.warning("Welcome email skipped: user %s no longer exists", user_id)
        return False

    text = (
        f"Hi {user.get_short_name()},\n\n"
        "Your account is ready. You can now sign in and place orders.\n\n"
        f"{settings.FRONTEND_URL}\n"
    )
    return _send(to=user.email, subject='Welcome to our pharmacy store', text=text, kind='Welcome')


# =============================================================================
# Orders
# =============================================================================

@shared_task(name='notifications.send_order_placed_emails')
def send_order_placed_emails(order_id):
    """
    Customer confirmation and admin alert for a new order.

    The two mails are toggled independently. Returns the number sent.
    """
    customer_on = _enabled('CUSTOMER_ORDER_CONFIRMATION_ENABLED')
    admin_on = _enabled('ADMIN_ORDER_PLACED_ENABLED')
    if not (customer_on or admin_on):
        logger.info("[EMAIL OFF] Order placed emails skipped for order %s", order_id)
        return 0

    order = _load_order(order_id)
    if order is None:
        return 0

    lines = _order_lines_text(order)
    sent = 0

    if customer_on:
        text = (
            f"Hi {order.user.get_short_name()},\n\n"
            f"Thank you for your order #{order.id}.\n\n"
            f"{lines}\n\n"
            f"Total: {order.total_amount}\n"
            f"Payment method: {order.payment_method}\n"
            f"Shipping to: {order.shipping_address}\n"
        )
        html = format_html(
            '<p>Thank you for your order #{}.</p>'
            '<table><tr><th>Product</th><th>Qty</th><th>Free</th><th>Subtotal</th></tr>{}</table>'
            '<p>Total: <strong>{}</strong></p>',
            order.id, _order_lines_html(order), order.total_amount,
        )
        sent += _send(
            to=order.user.email,
            subject=f'Order #{order.id} confirmed',
            text=text,
            html=html,
            kind='Order confirmation',
        )

    if admin_on:
        text = (
            f"New order #{order.id} from {order.user.email}\n\n"
            f"{lines}\n\n"
            f"Total: {order.total_amount}\n"
            f"Payment method: {order.payment_method}\n"
        )
        sent += _send(
            to=settings.ADMIN_EMAIL,
            subject=f'New order #{order.id}',
            text=text,
            kind='Admin order placed',
        )

    return sent


STATUS_SUBJECTS = {
    'CONFIRMED': 'Order #{id} has been confirmed',
    'SHIPPED': 'Order #{id} is on its way',
    'DELIVERED': 'Order #{id} has been delivered',
    'CANCELLED': 'Order #{id} has been cancelled',
}


@shared_task(name='notifications.send_order_status_email')
def send_order_status_email(order_id, status):
    """Tell the customer their order moved to ``status``."""
    if not _enabled('CUSTOMER_ORDER_STATUS_ENABLED'):
        logger.info("[EMAIL OFF] Status email skipped for order %s", order_id)
        return False

    order = _load_order(order_id)
    if order is None:
        return False

    subject = STATUS_SUBJECTS.get(status, 'Order #{id} status update').format(id=order.id)
    text = (
        f"Hi {order.user.get_short_name()},\n\n"
        f"Your order #{order.id} is now {status.lower()}.\n"
    )
    return _send(to=order.user.email, subject=subject, text=text, kind='Order status')


# =============================================================================
# Inventory
# =============================================================================

@shared_task(name='notifications.check_low_stock')
def check_low_stock():
    """
    Daily digest of active products at or below LOW_STOCK_THRESHOLD.

    Returns the number of low-stock products found, or None when the
    scheduler is switched off.
    """
    if not _enabled('LOW_STOCK_SCHEDULER_ENABLED'):
        logger.info("[LOW-STOCK SCHEDULER OFF] Skipping daily low-stock check")
        return None

    from apps.catalog.services import get_low_stock_products

    threshold = settings.LOW_STOCK_THRESHOLD
    products = list(get_low_stock_products(threshold=threshold))
    if not products:
        logger.info("[LOW-STOCK SCHEDULER] All products are adequately stocked (threshold=%s)", threshold)
        return 0

    logger.warning("[LOW-STOCK SCHEDULER] %s product(s) at or below %s", len(products), threshold)
    send_low_stock_alert(products)
    return len(products)


def send_low_stock_alert(products) -> bool:
    if not _enabled('ADMIN_LOW_STOCK_ENABLED'):
        logger.info("[EMAIL OFF] Low stock alert skipped")
        return False

    text = "Products running low:\n\n" + "\n".join(
        f"  {p.name}: {p.stock_quantity} left" for p in products
    )
    html = format_html(
        '<p>Products running low:</p><ul>{}</ul>',
        format_html_join('', '<li>{}: {} left</li>', ((p.name, p.stock_quantity) for p in products)),
    )
    return _send(
        to=settings.ADMIN_EMAIL,
        subject=f'Low stock alert: {len(products)} product(s)',
        text=text,
        html=html,
        kind='Low stock alert',
    )
