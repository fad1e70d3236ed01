"""Login and JWT issuance for customers."""

from django.contrib.auth import get_user_model
from django.contrib.auth.models import update_last_login
from rest_framework_simplejwt.tokens import RefreshToken

from .exceptions import InvalidCredentialsError, InactiveAccountError
from .otp_registry import normalize_email

User = get_user_model()


def authenticate_user(*, email: str, password: str) -> User:
    """
    Check credentials and stamp last_login.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password.
        InactiveAccountError: Account is deactivated.
    """
    user = User.objects.filter(email=normalize_email(email)).first()
    if user is None or not user.check_password(password):
        raise InvalidCredentialsError("Invalid email or password")

    if not user.is_active:
        raise InactiveAccountError("Account is deactivated")

    update_last_login(None, user)
    return user


def issue_tokens(user) -> dict:
    """Access/refresh pair as returned by the auth endpoints."""
    refresh = RefreshToken.for_user(user)
    return {
        'refresh': str(refresh),
        'access': str(refresh.access_token),
    }
