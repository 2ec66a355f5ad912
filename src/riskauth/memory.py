"""In-memory repositories for testing and single-process use.

Entities are copied on the way in and out so callers can never mutate
stored state without going through the repository. Read-modify-write
operations run under a per-username ``asyncio.Lock``.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections import defaultdict
from typing import TYPE_CHECKING

from .ports import IAccountRepository, IRoleRepository, ITwoFactorRepository

if TYPE_CHECKING:
    from datetime import datetime

    from .models import Account, Role, TwoFactorConfig, TwoFactorMethod

logger = logging.getLogger("riskauth.memory")


class _KeyedLocks:
    """One asyncio.Lock per key, created on demand."""

    def __init__(self) -> None:
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def __call__(self, key: str) -> asyncio.Lock:
        return self._locks[key]


class InMemoryAccountRepository(IAccountRepository):
    """Account store keyed by username with a secondary email index.

    Email lookups are case-insensitive; usernames are exact.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}
        self._locks = _KeyedLocks()

    async def get_by_username(self, username: str) -> Account | None:
        account = self._accounts.get(username)
        return copy.deepcopy(account) if account else None

    async def get_by_email(self, email: str) -> Account | None:
        wanted = email.lower()
        for account in self._accounts.values():
            if account.email.lower() == wanted:
                return copy.deepcopy(account)
        return None

    async def exists_by_username(self, username: str) -> bool:
        return username in self._accounts

    async def exists_by_email(self, email: str) -> bool:
        return await self.get_by_email(email) is not None

    async def add(self, account: Account) -> None:
        async with self._locks(account.username):
            if account.username in self._accounts:
                raise ValueError(f"Account {account.username!r} already stored")
            self._accounts[account.username] = copy.deepcopy(account)

    async def update_password_hash(self, username: str, password_hash: str) -> None:
        async with self._locks(username):
            account = self._accounts.get(username)
            if account is not None:
                account.password_hash = password_hash

    async def increment_failed_attempts(
        self, username: str, lock_threshold: int, now: datetime
    ) -> Account | None:
        async with self._locks(username):
            account = self._accounts.get(username)
            if account is None:
                return None
            account.failed_login_attempts += 1
            account.updated_at = now
            if account.failed_login_attempts >= lock_threshold:
                if not account.is_locked:
                    account.locked_at = now
                account.is_locked = True
            return copy.deepcopy(account)

    async def record_successful_login(self, username: str, now: datetime) -> None:
        async with self._locks(username):
            account = self._accounts.get(username)
            if account is not None:
                account.failed_login_attempts = 0
                account.last_login_at = now
                account.updated_at = now

    async def clear_lock(self, username: str) -> None:
        async with self._locks(username):
            account = self._accounts.get(username)
            if account is not None:
                account.is_locked = False
                account.locked_at = None
                account.failed_login_attempts = 0

    async def set_two_factor(
        self, username: str, enabled: bool, method: TwoFactorMethod | None
    ) -> None:
        async with self._locks(username):
            account = self._accounts.get(username)
            if account is not None:
                account.two_factor_enabled = enabled
                account.two_factor_method = method

    def __len__(self) -> int:
        return len(self._accounts)


class InMemoryRoleRepository(IRoleRepository):
    def __init__(self) -> None:
        self._roles: dict[str, Role] = {}

    async def get_by_name(self, name: str) -> Role | None:
        role = self._roles.get(name)
        return copy.deepcopy(role) if role else None

    async def add(self, role: Role) -> None:
        self._roles[role.name] = copy.deepcopy(role)


class InMemoryTwoFactorRepository(ITwoFactorRepository):
    """Two-factor configuration store, one entry per username."""

    def __init__(self) -> None:
        self._configs: dict[str, TwoFactorConfig] = {}
        self._locks = _KeyedLocks()

    async def get(self, username: str) -> TwoFactorConfig | None:
        config = self._configs.get(username)
        return copy.deepcopy(config) if config else None

    async def save(self, config: TwoFactorConfig) -> None:
        async with self._locks(config.username):
            self._configs[config.username] = copy.deepcopy(config)

    async def consume_backup_code(self, username: str, code_hash: str) -> bool:
        async with self._locks(username):
            config = self._configs.get(username)
            if config is None or code_hash not in config.backup_code_hashes:
                return False
            config.backup_code_hashes.remove(code_hash)
            logger.debug(
                "Backup code consumed for %s (%d left)",
                username,
                len(config.backup_code_hashes),
            )
            return True

    async def set_enabled(
        self,
        username: str,
        enabled: bool,
        requires_setup: bool,
        now: datetime,
    ) -> bool:
        async with self._locks(username):
            config = self._configs.get(username)
            if config is None:
                return False
            config.enabled = enabled
            config.requires_setup = requires_setup
            config.updated_at = now
            return True


__all__: list[str] = [
    "InMemoryAccountRepository",
    "InMemoryRoleRepository",
    "InMemoryTwoFactorRepository",
]
