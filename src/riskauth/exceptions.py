"""Authentication domain and infrastructure exceptions.

Domain failures (bad credentials, locked accounts, invalid codes) inherit
from AuthError. Collaborator failures (stores, token issuer, code
delivery) inherit from InfrastructureError and are never recorded as
failed login attempts.
"""

from __future__ import annotations


class RiskAuthError(Exception):
    """Root exception for the riskauth package."""


class AuthError(RiskAuthError):
    """Base class for all authentication domain errors."""


class InfrastructureError(RiskAuthError):
    """Raised when a collaborator (store, issuer, channel) fails."""


# ═══════════════════════════════════════════════════════════════
# AUTHENTICATION ERRORS
# ═══════════════════════════════════════════════════════════════


class AuthenticationError(AuthError):
    """Raised when a login attempt is rejected.

    This is the base exception for all login rejections.
    Use more specific exceptions when possible.
    """


class InvalidCredentialsError(AuthenticationError):
    """Raised when the supplied credentials do not match an active account."""


class UnsupportedMethodError(AuthenticationError):
    """Raised when no registered strategy supports the requested method.

    Attributes:
        method: The method name as requested.
    """

    def __init__(self, method: str) -> None:
        super().__init__(f"Unsupported authentication method: {method}")
        self.method = method


class AccountLockedError(AuthenticationError):
    """Raised when the account is locked.

    Attributes:
        failed_attempts: Consecutive failures recorded on the account.
        lockout_duration: Seconds until the lock expires, None when sticky.
    """

    def __init__(
        self,
        message: str = "Account is locked. Please contact administrator.",
        failed_attempts: int | None = None,
        lockout_duration: int | None = None,
    ) -> None:
        super().__init__(message)
        self.failed_attempts = failed_attempts
        self.lockout_duration = lockout_duration


class SuspiciousActivityError(AccountLockedError):
    """Raised when the risk engine flags the username or source address."""

    def __init__(
        self,
        message: str = "Account temporarily locked due to suspicious activity",
    ) -> None:
        super().__init__(message)


class CaptchaFailedError(AuthenticationError):
    """Raised when the CAPTCHA token is rejected."""

    def __init__(self, message: str = "Captcha verification failed") -> None:
        super().__init__(message)


class DirectoryUnavailableError(AuthenticationError):
    """Raised when directory authentication is requested but disabled."""


class InvalidTokenError(AuthenticationError):
    """Raised when an issued token fails signature or claims validation."""


# ═══════════════════════════════════════════════════════════════
# TWO-FACTOR ERRORS
# ═══════════════════════════════════════════════════════════════


class TwoFactorError(AuthError):
    """Base class for two-factor errors."""


class InvalidTwoFactorCodeError(TwoFactorError):
    """Raised when a TOTP, one-time or backup code is rejected."""


class TwoFactorNotConfiguredError(TwoFactorError):
    """Raised when an operation needs a two-factor configuration that is missing."""

    def __init__(self, message: str = "2FA not setup. Please setup first.") -> None:
        super().__init__(message)


class MissingPhoneNumberError(TwoFactorError):
    """Raised when SMS setup is requested without a phone number."""

    def __init__(
        self, message: str = "Phone number is required for SMS 2FA"
    ) -> None:
        super().__init__(message)


class UnsupportedTwoFactorMethodError(TwoFactorError):
    """Raised for an unknown method, or one that cannot do what was asked.

    Attributes:
        method: The offending method name.
    """

    def __init__(self, method: str, message: str | None = None) -> None:
        super().__init__(message or f"Unsupported 2FA method: {method}")
        self.method = method


# ═══════════════════════════════════════════════════════════════
# ACCOUNT ERRORS
# ═══════════════════════════════════════════════════════════════


class AccountNotFoundError(AuthError):
    """Raised when a management operation names an unknown account."""

    def __init__(self, username: str) -> None:
        super().__init__(f"User not found: {username}")
        self.username = username


class RegistrationError(AuthError):
    """Base class for registration failures."""


class DuplicateUsernameError(RegistrationError):
    """Raised when the username is already taken."""

    def __init__(self, message: str = "Username already exists") -> None:
        super().__init__(message)


class DuplicateEmailError(RegistrationError):
    """Raised when the email is already taken."""

    def __init__(self, message: str = "Email already exists") -> None:
        super().__init__(message)


# ═══════════════════════════════════════════════════════════════
# INFRASTRUCTURE ERRORS
# ═══════════════════════════════════════════════════════════════


class CodeDeliveryError(InfrastructureError):
    """Raised when an SMS or email code could not be dispatched."""


class TokenIssuanceError(InfrastructureError):
    """Raised when the token issuer cannot produce a token."""


__all__: list[str] = [
    # Base
    "RiskAuthError",
    "AuthError",
    "InfrastructureError",
    # Authentication
    "AuthenticationError",
    "InvalidCredentialsError",
    "UnsupportedMethodError",
    "AccountLockedError",
    "SuspiciousActivityError",
    "CaptchaFailedError",
    "DirectoryUnavailableError",
    "InvalidTokenError",
    # Two-factor
    "TwoFactorError",
    "InvalidTwoFactorCodeError",
    "TwoFactorNotConfiguredError",
    "MissingPhoneNumberError",
    "UnsupportedTwoFactorMethodError",
    # Accounts
    "AccountNotFoundError",
    "RegistrationError",
    "DuplicateUsernameError",
    "DuplicateEmailError",
    # Infrastructure
    "CodeDeliveryError",
    "TokenIssuanceError",
]
