"""Ports (protocols) consumed by the authentication engine.

Applications supply adapters for these; in-memory versions live in
``riskauth.memory``, ``riskauth.ledger`` and ``riskauth.mfa.otp``.
Mutating repository methods that touch counters or single-use material
are atomic per account by contract.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from .models import Account, AttemptRecord, Role, TwoFactorConfig, TwoFactorMethod


# ═══════════════════════════════════════════════════════════════
# STORES
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IAccountRepository(Protocol):
    """Protocol for account storage."""

    async def get_by_username(self, username: str) -> Account | None:
        ...

    async def get_by_email(self, email: str) -> Account | None:
        ...

    async def exists_by_username(self, username: str) -> bool:
        ...

    async def exists_by_email(self, email: str) -> bool:
        ...

    async def add(self, account: Account) -> None:
        """Persist a new account."""
        ...

    async def update_password_hash(self, username: str, password_hash: str) -> None:
        ...

    async def increment_failed_attempts(
        self, username: str, lock_threshold: int, now: datetime
    ) -> Account | None:
        """Atomically bump the failure counter and lock at the threshold.

        Sets ``is_locked`` (and ``locked_at`` when not already locked) once
        the counter reaches ``lock_threshold``.

        Args:
            username: Account username.
            lock_threshold: Counter value that locks the account.
            now: Timestamp to stamp on a new lock.

        Returns:
            The updated account, or None when no such account exists.
        """
        ...

    async def record_successful_login(self, username: str, now: datetime) -> None:
        """Atomically reset the failure counter and stamp ``last_login_at``."""
        ...

    async def clear_lock(self, username: str) -> None:
        """Atomically clear the lock flag, lock time and failure counter."""
        ...

    async def set_two_factor(
        self, username: str, enabled: bool, method: TwoFactorMethod | None
    ) -> None:
        """Mirror the account's two-factor flag and method."""
        ...


@runtime_checkable
class IRoleRepository(Protocol):
    """Protocol for role storage."""

    async def get_by_name(self, name: str) -> Role | None:
        ...

    async def add(self, role: Role) -> None:
        ...


@runtime_checkable
class IAttemptLedger(Protocol):
    """Append-only store of login attempts.

    Counts are over records with ``attempted_at`` strictly after ``since``.
    """

    async def append(self, record: AttemptRecord) -> None:
        ...

    async def count_failed_by_username(self, username: str, since: datetime) -> int:
        ...

    async def count_failed_by_ip(self, ip_address: str, since: datetime) -> int:
        ...

    async def count_by_username(self, username: str, since: datetime) -> int:
        """Count attempts of any outcome."""
        ...

    async def list_by_username(self, username: str) -> list[AttemptRecord]:
        """All records for a username, oldest first."""
        ...


@runtime_checkable
class ITwoFactorRepository(Protocol):
    """Protocol for per-account two-factor configuration storage."""

    async def get(self, username: str) -> TwoFactorConfig | None:
        ...

    async def save(self, config: TwoFactorConfig) -> None:
        """Create or overwrite the account's configuration."""
        ...

    async def consume_backup_code(self, username: str, code_hash: str) -> bool:
        """Atomically remove one stored backup code hash.

        Returns:
            True if the hash was present and removed, False if it was
            already gone (consumed concurrently).
        """
        ...

    async def set_enabled(
        self,
        username: str,
        enabled: bool,
        requires_setup: bool,
        now: datetime,
    ) -> bool:
        """Atomically flip the enabled and requires-setup flags.

        Stored material (secret, phone, backup code hashes) is left as is.

        Returns:
            True if a configuration existed and was updated.
        """
        ...


@runtime_checkable
class IOtpChallengeStore(Protocol):
    """Protocol for one-time code challenges bound to an identifier."""

    async def create(self, identifier: str, code: str, ttl: int = 300) -> None:
        """Create or replace the challenge for ``identifier``."""
        ...

    async def verify(self, identifier: str, code: str, max_attempts: int = 3) -> bool:
        """Verify and consume a challenge.

        A matching, unexpired code consumes the challenge. A wrong code
        counts against ``max_attempts``; the challenge is discarded once
        they are exhausted.
        """
        ...

    async def delete(self, identifier: str) -> None:
        ...


# ═══════════════════════════════════════════════════════════════
# SERVICES
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IPasswordHasher(Protocol):
    """Protocol for one-way password hashing."""

    def hash(self, password: str) -> str:
        ...

    def verify(self, hashed_password: str, password: str) -> bool:
        ...

    def needs_rehash(self, hashed_password: str) -> bool:
        ...


@runtime_checkable
class ITokenIssuer(Protocol):
    """Protocol for issuing bearer tokens after a successful login."""

    async def issue(self, account: Account, auth_method: str) -> str:
        ...


@runtime_checkable
class ICaptchaVerifier(Protocol):
    """Protocol for CAPTCHA token verification."""

    async def verify(self, token: str | None, remote_ip: str | None = None) -> bool:
        ...


@runtime_checkable
class IDirectoryBindProvider(Protocol):
    """Protocol for directory (LDAP) credential binds."""

    async def bind(self, username: str, password: str) -> bool:
        """Attempt a bind.

        Returns:
            True when the directory accepts the credentials.
        """
        ...


@runtime_checkable
class ICodeDeliveryChannel(Protocol):
    """Protocol for out-of-band code delivery.

    Applications implement this with their SMS and email providers.
    """

    async def send_sms(self, phone_number: str, code: str) -> None:
        ...

    async def send_email(self, email: str, code: str) -> None:
        ...


__all__: list[str] = [
    "IAccountRepository",
    "IAttemptLedger",
    "ICaptchaVerifier",
    "ICodeDeliveryChannel",
    "IDirectoryBindProvider",
    "IOtpChallengeStore",
    "IPasswordHasher",
    "IRoleRepository",
    "ITokenIssuer",
    "ITwoFactorRepository",
]
