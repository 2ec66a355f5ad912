"""Configuration for the authentication engine.

All settings are frozen dataclasses with production defaults. ``AuthConfig``
aggregates the sections and can be built from environment variables.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any


class LockPolicy(str, Enum):
    """How a lock set by repeated failures is released."""

    STICKY = "sticky"
    """Lock stays until an administrator clears it."""

    TIMED = "timed"
    """Lock expires after ``lockout_duration_minutes``."""


@dataclass(frozen=True)
class RiskConfig:
    """Risk scoring and lockout thresholds.

    Attributes:
        max_failed_attempts: Consecutive failures that lock the account.
        fraud_window_minutes: Sliding window for failure counts.
        rapid_window_minutes: Window for the rapid-attempt signal.
        max_failed_attempts_per_ip: Failures from one address that mark it suspicious.
        suspicious_score_threshold: Scores strictly above this are suspicious.
        lock_policy: Sticky (default) or timed lock release.
        lockout_duration_minutes: Lock lifetime under the timed policy.
    """

    max_failed_attempts: int = 5
    fraud_window_minutes: int = 60
    rapid_window_minutes: int = 5
    max_failed_attempts_per_ip: int = 20
    suspicious_score_threshold: int = 50
    lock_policy: LockPolicy = LockPolicy.STICKY
    lockout_duration_minutes: int = 30


@dataclass(frozen=True)
class OtpConfig:
    """One-time code configuration for SMS and email challenges.

    Attributes:
        code_length: Number of digits in a delivered code.
        ttl_seconds: Challenge lifetime in seconds.
        max_attempts: Wrong guesses allowed before the challenge is burned.
    """

    code_length: int = 6
    ttl_seconds: int = 300  # 5 minutes
    max_attempts: int = 3


@dataclass(frozen=True)
class TwoFactorSettings:
    """Two-factor setup parameters.

    Attributes:
        issuer: Application name shown in authenticator apps.
        totp_digits: Digits in a TOTP code.
        totp_interval: TOTP step in seconds.
        totp_valid_window: Steps of clock drift accepted either side.
        backup_code_count: Backup codes generated per setup.
        backup_code_length: Digits per backup code.
        require_setup_after_disable: Whether re-enabling needs a fresh setup.
    """

    issuer: str = "AuthApp"
    totp_digits: int = 6
    totp_interval: int = 30
    totp_valid_window: int = 1
    backup_code_count: int = 10
    backup_code_length: int = 8
    require_setup_after_disable: bool = True


@dataclass(frozen=True)
class AuthConfig:
    """Top-level engine configuration.

    Example:
        ```python
        config = AuthConfig.from_env()
        config = AuthConfig(risk=RiskConfig(lock_policy=LockPolicy.TIMED))
        ```
    """

    default_auth_method: str = "JWT"
    ldap_enabled: bool = False
    default_role: str = "USER"
    default_role_description: str = "Default user role"
    risk: RiskConfig = field(default_factory=RiskConfig)
    otp: OtpConfig = field(default_factory=OtpConfig)
    two_factor: TwoFactorSettings = field(default_factory=TwoFactorSettings)

    @classmethod
    def from_env(
        cls,
        prefix: str = "RISKAUTH_",
        environ: Mapping[str, str] | None = None,
    ) -> AuthConfig:
        """Build a config from environment variables.

        Top-level fields map to ``{prefix}{FIELD}``; section fields map to
        ``{prefix}{SECTION}_{FIELD}``, e.g. ``RISKAUTH_RISK_MAX_FAILED_ATTEMPTS``.
        Unset variables keep their defaults.

        Args:
            prefix: Variable name prefix.
            environ: Source mapping (default ``os.environ``).

        Returns:
            The resulting configuration.

        Raises:
            ValueError: If a variable cannot be converted to the field type.
        """
        env = os.environ if environ is None else environ
        config = cls()
        top: dict[str, Any] = {}
        for f in fields(cls):
            value = getattr(config, f.name)
            if isinstance(value, (RiskConfig, OtpConfig, TwoFactorSettings)):
                section_prefix = f"{prefix}{f.name.upper()}_"
                top[f.name] = _apply_env(value, section_prefix, env)
            else:
                raw = env.get(f"{prefix}{f.name.upper()}")
                if raw is not None:
                    top[f.name] = _coerce(raw, value)
        return replace(config, **top)


def _apply_env(section: Any, prefix: str, env: Mapping[str, str]) -> Any:
    changes: dict[str, Any] = {}
    for f in fields(section):
        raw = env.get(f"{prefix}{f.name.upper()}")
        if raw is not None:
            changes[f.name] = _coerce(raw, getattr(section, f.name))
    return replace(section, **changes) if changes else section


def _coerce(raw: str, current: Any) -> Any:
    if isinstance(current, LockPolicy):
        return LockPolicy(raw.strip().lower())
    if isinstance(current, bool):
        normalized = raw.strip().lower()
        if normalized in ("1", "true", "yes", "on"):
            return True
        if normalized in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"Invalid boolean value: {raw!r}")
    if isinstance(current, int):
        return int(raw)
    return raw


__all__: list[str] = [
    "AuthConfig",
    "LockPolicy",
    "OtpConfig",
    "RiskConfig",
    "TwoFactorSettings",
]
