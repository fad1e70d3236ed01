"""Domain-specific exceptions for accounts services."""


class AccountsServiceError(Exception):
    """Base exception for accounts services."""
    pass


class EmailInUseError(AccountsServiceError):
    """Raised when an account with the email already exists."""
    pass


class NoPendingRegistrationError(AccountsServiceError):
    """Raised when no pending registration exists for the email."""
    pass


class ExpiredOtpError(AccountsServiceError):
    """Raised when the verification code is older than the expiry window."""
    pass


class InvalidOtpError(AccountsServiceError):
    """Raised when the submitted verification code does not match."""
    pass


class InvalidCredentialsError(AccountsServiceError):
    """Raised when authentication credentials are invalid."""
    pass


class InactiveAccountError(AccountsServiceError):
    """Raised when account is deactivated."""
    pass
