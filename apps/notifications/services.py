"""
Fire-and-forget notification dispatch.

Callers hand off to Celery and move on. Nothing here raises: a broker that
is down or misconfigured must never fail an order or a registration.
Order notifications are meant to be registered with
``transaction.on_commit`` so they only go out for committed data.
"""

import logging

from . import tasks

logger = logging.getLogger(__name__)


def _enqueue(task, *args, description: str) -> bool:
    try:
        task.delay(*args)
    except Exception:
        logger.exception("Failed to enqueue %s", description)
        return False
    return True


def notify_otp_issued(email: str, name: str, code: str, expiry_minutes: int) -> bool:
    return _enqueue(
        tasks.send_otp_email, email, name, code, expiry_minutes,
        description=f"OTP email for {email}",
    )


def notify_welcome(user) -> bool:
    return _enqueue(tasks.send_welcome_email, str(user.pk), description=f"welcome email for {user.email}")


def notify_order_placed(order) -> bool:
    return _enqueue(tasks.send_order_placed_emails, order.pk, description=f"order placed emails for #{order.pk}")


def notify_order_status_changed(order) -> bool:
    return _enqueue(
        tasks.send_order_status_email, order.pk, order.status,
        description=f"status email for order #{order.pk}",
    )
