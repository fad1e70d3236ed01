"""Services for accounts business logic."""

from .exceptions import (
    AccountsServiceError,
    EmailInUseError,
    NoPendingRegistrationError,
    ExpiredOtpError,
    InvalidOtpError,
    InvalidCredentialsError,
    InactiveAccountError,
)
from .otp_registry import (
    OtpRegistry,
    OtpStore,
    InMemoryOtpStore,
    CacheOtpStore,
    PendingRegistration,
    get_otp_registry,
)
from .registration import (
    assert_email_available,
    initiate_registration,
    resend_registration_otp,
    complete_registration,
)
from .user_authentication import authenticate_user, issue_tokens

__all__ = [
    # Exceptions
    'AccountsServiceError',
    'EmailInUseError',
    'NoPendingRegistrationError',
    'ExpiredOtpError',
    'InvalidOtpError',
    'InvalidCredentialsError',
    'InactiveAccountError',
    # OTP registry
    'OtpRegistry',
    'OtpStore',
    'InMemoryOtpStore',
    'CacheOtpStore',
    'PendingRegistration',
    'get_otp_registry',
    # Services
    'assert_email_available',
    'initiate_registration',
    'resend_registration_otp',
    'complete_registration',
    'authenticate_user',
    'issue_tokens',
]
