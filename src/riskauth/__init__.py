"""Risk-aware authentication orchestration.

Combines pluggable credential strategies with attempt-ledger risk scoring,
account lockout and multi-method two-factor verification.
"""

from __future__ import annotations

from .captcha import NoopCaptchaVerifier, RecaptchaVerifier
from .config import AuthConfig, LockPolicy, OtpConfig, RiskConfig, TwoFactorSettings
from .delivery import LoggingCodeDelivery
from .exceptions import (
    AccountLockedError,
    AccountNotFoundError,
    AuthenticationError,
    AuthError,
    CaptchaFailedError,
    CodeDeliveryError,
    DirectoryUnavailableError,
    DuplicateEmailError,
    DuplicateUsernameError,
    InfrastructureError,
    InvalidCredentialsError,
    InvalidTokenError,
    InvalidTwoFactorCodeError,
    MissingPhoneNumberError,
    RegistrationError,
    RiskAuthError,
    SuspiciousActivityError,
    TokenIssuanceError,
    TwoFactorError,
    TwoFactorNotConfiguredError,
    UnsupportedMethodError,
    UnsupportedTwoFactorMethodError,
)
from .factory import create_login_orchestrator
from .hasher import PasswordHasher
from .ledger import InMemoryAttemptLedger
from .memory import (
    InMemoryAccountRepository,
    InMemoryRoleRepository,
    InMemoryTwoFactorRepository,
)
from .mfa import InMemoryOtpChallengeStore, TwoFactorService
from .models import (
    Account,
    AttemptRecord,
    AuthResult,
    Identity,
    LoginRequest,
    Privilege,
    Role,
    TwoFactorChallenge,
    TwoFactorConfig,
    TwoFactorMethod,
    TwoFactorSetupResult,
)
from .orchestrator import LoginOrchestrator
from .risk import RiskEngine
from .strategies import (
    BasicPasswordStrategy,
    DirectoryStrategy,
    JwtPasswordStrategy,
    StrategyRegistry,
)
from .tokens import JwtTokenIssuer

__version__ = "0.1.0"

__all__: list[str] = [
    # Orchestration
    "LoginOrchestrator",
    "create_login_orchestrator",
    "RiskEngine",
    "StrategyRegistry",
    "TwoFactorService",
    # Strategies
    "BasicPasswordStrategy",
    "DirectoryStrategy",
    "JwtPasswordStrategy",
    # Config
    "AuthConfig",
    "LockPolicy",
    "OtpConfig",
    "RiskConfig",
    "TwoFactorSettings",
    # Models
    "Account",
    "AttemptRecord",
    "AuthResult",
    "Identity",
    "LoginRequest",
    "Privilege",
    "Role",
    "TwoFactorChallenge",
    "TwoFactorConfig",
    "TwoFactorMethod",
    "TwoFactorSetupResult",
    # Adapters
    "InMemoryAccountRepository",
    "InMemoryAttemptLedger",
    "InMemoryOtpChallengeStore",
    "InMemoryRoleRepository",
    "InMemoryTwoFactorRepository",
    "JwtTokenIssuer",
    "LoggingCodeDelivery",
    "NoopCaptchaVerifier",
    "PasswordHasher",
    "RecaptchaVerifier",
    # Exceptions
    "AccountLockedError",
    "AccountNotFoundError",
    "AuthError",
    "AuthenticationError",
    "CaptchaFailedError",
    "CodeDeliveryError",
    "DirectoryUnavailableError",
    "DuplicateEmailError",
    "DuplicateUsernameError",
    "InfrastructureError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "InvalidTwoFactorCodeError",
    "MissingPhoneNumberError",
    "RegistrationError",
    "RiskAuthError",
    "SuspiciousActivityError",
    "TokenIssuanceError",
    "TwoFactorError",
    "TwoFactorNotConfiguredError",
    "UnsupportedMethodError",
    "UnsupportedTwoFactorMethodError",
]
