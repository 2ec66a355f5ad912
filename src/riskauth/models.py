"""Domain records and result value objects.

Mutable entities (Account, Role, TwoFactorConfig) are plain dataclasses owned
by their repositories. Attempt records are frozen. Everything handed back to
callers of the orchestrator is an immutable pydantic value object.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import UnsupportedTwoFactorMethodError


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class TwoFactorMethod(str, Enum):
    """Second factor kinds."""

    TOTP = "TOTP"
    SMS = "SMS"
    EMAIL = "EMAIL"

    @classmethod
    def parse(cls, value: str | TwoFactorMethod) -> TwoFactorMethod:
        """Parse a method name case-insensitively.

        Raises:
            UnsupportedTwoFactorMethodError: If the name is unknown.
        """
        if isinstance(value, TwoFactorMethod):
            return value
        try:
            return cls(value.strip().upper())
        except ValueError as err:
            raise UnsupportedTwoFactorMethodError(value) from err


# ═══════════════════════════════════════════════════════════════
# ENTITIES
# ═══════════════════════════════════════════════════════════════


@dataclass
class Privilege:
    name: str
    description: str = ""
    resource_type: str = ""
    action_type: str = ""


@dataclass
class Role:
    name: str
    description: str = ""
    privileges: list[Privilege] = field(default_factory=list)


@dataclass
class Account:
    """A local user account.

    ``failed_login_attempts`` counts consecutive failures since the last
    success. ``is_locked`` is set by the risk engine once the counter hits
    the threshold; ``locked_at`` records when, for the timed lock policy.
    """

    username: str
    email: str
    password_hash: str
    full_name: str = ""
    account_id: str = field(default_factory=lambda: str(uuid4()))
    is_active: bool = True
    is_locked: bool = False
    locked_at: datetime | None = None
    failed_login_attempts: int = 0
    last_login_at: datetime | None = None
    roles: list[Role] = field(default_factory=list)
    two_factor_enabled: bool = False
    two_factor_method: TwoFactorMethod | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def role_names(self) -> frozenset[str]:
        return frozenset(role.name for role in self.roles)

    def privilege_names(self) -> frozenset[str]:
        """Union of privilege names over all roles."""
        return frozenset(
            privilege.name for role in self.roles for privilege in role.privileges
        )


@dataclass(frozen=True)
class AttemptRecord:
    """One login attempt, immutable once written.

    Attributes:
        username: Username exactly as supplied by the caller.
        ip_address: Source address.
        user_agent: Client user agent.
        success: Whether the attempt produced a token.
        failure_reason: Human-readable reason for failures.
        attempted_at: Server-assigned UTC timestamp.
        suspicious: Whether the risk score crossed the suspicion threshold.
        risk_score: Score in [0, 100] computed before the write.
    """

    username: str
    ip_address: str
    user_agent: str
    success: bool
    failure_reason: str | None = None
    attempted_at: datetime = field(default_factory=utcnow)
    suspicious: bool = False
    risk_score: int = 0


@dataclass
class TwoFactorConfig:
    """Per-account second-factor configuration.

    Only hashes of backup codes are kept. ``requires_setup`` is set by
    disable and cleared by setup, so an account cannot re-enable stale
    material.
    """

    username: str
    method: TwoFactorMethod
    enabled: bool = False
    secret: str | None = None
    phone_number: str | None = None
    backup_code_hashes: list[str] = field(default_factory=list)
    requires_setup: bool = False
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


# ═══════════════════════════════════════════════════════════════
# VALUE OBJECTS
# ═══════════════════════════════════════════════════════════════


class ValueObject(BaseModel):
    """Immutable, structurally compared result object."""

    model_config = ConfigDict(frozen=True)


class Identity(ValueObject):
    """Identity confirmed by an authentication strategy."""

    username: str
    auth_method: str
    authorities: frozenset[str] = frozenset()


class LoginRequest(ValueObject):
    """Input to ``LoginOrchestrator.authenticate``."""

    username: str
    password: str
    ip_address: str
    user_agent: str = ""
    auth_method: str | None = None
    two_factor_code: str | None = None
    captcha_token: str | None = None


class AuthResult(ValueObject):
    """Successful login carrying an issued token.

    Attributes:
        token: Bearer token from the token issuer.
        username: Canonical account username.
        email: Account email.
        roles: Role names.
        privileges: Union of privileges over all roles.
        auth_method: Upper-cased method that authenticated the user.
    """

    token: str
    username: str
    email: str
    roles: frozenset[str] = frozenset()
    privileges: frozenset[str] = frozenset()
    auth_method: str = "JWT"
    two_factor_required: bool = False


class TwoFactorChallenge(ValueObject):
    """Credentials were correct but a second factor must be supplied."""

    username: str
    method: TwoFactorMethod
    two_factor_required: bool = True


class TwoFactorSetupResult(ValueObject):
    """Material shown to the user once, right after setup.

    Attributes:
        method: Configured method.
        secret: Base32 TOTP secret (TOTP only).
        provisioning_uri: ``otpauth://`` URI for QR rendering (TOTP only).
        manual_key: Secret grouped in fours for manual entry (TOTP only).
        message: Instructions for the user.
        backup_codes: Plaintext backup codes, never retrievable again.
    """

    method: TwoFactorMethod
    secret: str | None = None
    provisioning_uri: str | None = None
    manual_key: str | None = None
    message: str | None = None
    backup_codes: tuple[str, ...] = Field(default_factory=tuple)


__all__: list[str] = [
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
    "ValueObject",
    "utcnow",
]
