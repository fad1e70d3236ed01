"""
OTP-gated registration service.

No account exists until the emailed code is verified. The pending payload
carries the already-hashed password, so raw credentials never reach the
OTP store.
"""

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.contrib.auth.hashers import make_password
from django.db import IntegrityError, transaction

from apps.notifications.services import notify_otp_issued, notify_welcome

from .exceptions import EmailInUseError
from .otp_registry import OtpRegistry, PendingRegistration, get_otp_registry, normalize_email

logger = logging.getLogger(__name__)

User = get_user_model()


def assert_email_available(email: str) -> None:
    """
    Raises:
        EmailInUseError: If an account already uses the email.
    """
    if User.objects.filter(email=normalize_email(email)).exists():
        raise EmailInUseError("Email already exists")


def initiate_registration(
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str = "",
    phone: str = "",
    registry: Optional[OtpRegistry] = None,
) -> PendingRegistration:
    """
    Park the registration and email a verification code.

    Args:
        email: Address to verify; becomes the login.
        password: Raw password, hashed before it is stored.
        first_name: Used in the OTP email greeting.
        last_name: Optional.
        phone: Optional.
        registry: Defaults to the process-wide registry.

    Returns:
        The stored PendingRegistration.

    Raises:
        EmailInUseError: If an account already uses the email.
    """
    registry = registry or get_otp_registry()
    key = normalize_email(email)
    assert_email_available(key)

    payload = {
        'email': key,
        'password': make_password(password),
        'first_name': first_name,
        'last_name': last_name,
        'phone': phone,
    }
    entry = registry.create_entry(key, payload)
    notify_otp_issued(key, first_name, entry.code, registry.expiry_minutes)
    return entry


def resend_registration_otp(*, email: str, registry: Optional[OtpRegistry] = None) -> PendingRegistration:
    """
    Email a fresh code for a pending registration.

    Raises:
        NoPendingRegistrationError: If nothing is pending for the email.
    """
    registry = registry or get_otp_registry()
    entry = registry.reissue(email)
    notify_otp_issued(entry.email, entry.payload.get('first_name', ''), entry.code, registry.expiry_minutes)
    return entry


def complete_registration(*, email: str, code: str, registry: Optional[OtpRegistry] = None) -> User:
    """
    Verify the code and create the account.

    The code is consumed before the account is written. If account creation
    then fails, the user has to start registration again.

    Returns:
        The created User.

    Raises:
        NoPendingRegistrationError, ExpiredOtpError, InvalidOtpError: From
            the registry.
        EmailInUseError: If the email was registered in the meantime.
    """
    registry = registry or get_otp_registry()
    payload = registry.verify_and_consume(email, code)

    try:
        with transaction.atomic():
            if User.objects.filter(email=payload['email']).exists():
                raise EmailInUseError("Email already exists")

            user = User(
                email=payload['email'],
                first_name=payload['first_name'],
                last_name=payload.get('last_name', ''),
                phone=payload.get('phone', ''),
            )
            # Payload holds a hash from make_password.
            user.password = payload['password']
            user.save()

            transaction.on_commit(lambda: notify_welcome(user))
    except IntegrityError:
        raise EmailInUseError("Email already exists")

    logger.info("Account created for %s", user.email)
    return user
