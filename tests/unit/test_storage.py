"""Tests for the in-memory repositories and attempt ledger."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from riskauth import (
    Account,
    AttemptRecord,
    InMemoryRoleRepository,
    Role,
    TwoFactorConfig,
    TwoFactorMethod,
)

T0 = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def attempt(
    username: str = "alice",
    ip: str = "10.0.0.1",
    success: bool = False,
    at: datetime = T0,
) -> AttemptRecord:
    return AttemptRecord(
        username=username,
        ip_address=ip,
        user_agent="pytest",
        success=success,
        failure_reason=None if success else "Bad password",
        attempted_at=at,
    )


class TestAttemptLedger:
    """Test ledger counting semantics."""

    @pytest.mark.asyncio
    async def test_counts_are_strictly_after_since(self, ledger) -> None:
        await ledger.append(attempt(at=T0))
        await ledger.append(attempt(at=T0 + timedelta(minutes=1)))

        assert await ledger.count_failed_by_username("alice", T0) == 1
        assert await ledger.count_failed_by_username("alice", T0 - timedelta(seconds=1)) == 2

    @pytest.mark.asyncio
    async def test_failure_counts_ignore_successes(self, ledger) -> None:
        await ledger.append(attempt(success=True))
        await ledger.append(attempt())
        since = T0 - timedelta(hours=1)

        assert await ledger.count_failed_by_username("alice", since) == 1
        assert await ledger.count_failed_by_ip("10.0.0.1", since) == 1
        assert await ledger.count_by_username("alice", since) == 2

    @pytest.mark.asyncio
    async def test_usernames_are_exact(self, ledger) -> None:
        await ledger.append(attempt(username="Alice"))
        since = T0 - timedelta(hours=1)

        assert await ledger.count_failed_by_username("alice", since) == 0
        assert await ledger.list_by_username("Alice") == [attempt(username="Alice")]

    @pytest.mark.asyncio
    async def test_append_only(self, ledger) -> None:
        await asyncio.gather(*(ledger.append(attempt(ip=f"10.0.0.{i}")) for i in range(20)))
        assert len(ledger) == 20


class TestAccountRepository:
    @pytest.fixture
    def account(self) -> Account:
        return Account(username="alice", email="Alice@Example.com", password_hash="x")

    @pytest.mark.asyncio
    async def test_returns_copies(self, accounts, account) -> None:
        """Test mutating a returned entity does not change stored state."""
        await accounts.add(account)
        account.is_locked = True

        loaded = await accounts.get_by_username("alice")
        loaded.failed_login_attempts = 99

        stored = await accounts.get_by_username("alice")
        assert stored.is_locked is False
        assert stored.failed_login_attempts == 0

    @pytest.mark.asyncio
    async def test_duplicate_add(self, accounts, account) -> None:
        await accounts.add(account)
        with pytest.raises(ValueError):
            await accounts.add(account)

    @pytest.mark.asyncio
    async def test_email_lookup_is_case_insensitive(self, accounts, account) -> None:
        await accounts.add(account)

        assert (await accounts.get_by_email("alice@example.COM")).username == "alice"
        assert await accounts.exists_by_email("ALICE@example.com") is True
        assert await accounts.exists_by_username("ALICE") is False

    @pytest.mark.asyncio
    async def test_lock_timestamp_set_once(self, accounts, account) -> None:
        await accounts.add(account)
        later = T0 + timedelta(minutes=5)

        await accounts.increment_failed_attempts("alice", 1, T0)
        updated = await accounts.increment_failed_attempts("alice", 1, later)

        assert updated.is_locked is True
        assert updated.locked_at == T0
        assert updated.failed_login_attempts == 2

    @pytest.mark.asyncio
    async def test_increment_unknown(self, accounts) -> None:
        assert await accounts.increment_failed_attempts("ghost", 5, T0) is None

    @pytest.mark.asyncio
    async def test_clear_lock(self, accounts, account) -> None:
        await accounts.add(account)
        await accounts.increment_failed_attempts("alice", 1, T0)

        await accounts.clear_lock("alice")

        stored = await accounts.get_by_username("alice")
        assert (stored.is_locked, stored.locked_at, stored.failed_login_attempts) == (
            False,
            None,
            0,
        )


class TestTwoFactorRepository:
    @pytest.mark.asyncio
    async def test_consume_backup_code_once(self, two_factor_configs) -> None:
        await two_factor_configs.save(
            TwoFactorConfig(
                username="alice",
                method=TwoFactorMethod.EMAIL,
                backup_code_hashes=["h1", "h2"],
            )
        )

        results = await asyncio.gather(
            two_factor_configs.consume_backup_code("alice", "h1"),
            two_factor_configs.consume_backup_code("alice", "h1"),
        )

        assert sorted(results) == [False, True]
        assert (await two_factor_configs.get("alice")).backup_code_hashes == ["h2"]

    @pytest.mark.asyncio
    async def test_set_enabled_keeps_material(self, two_factor_configs) -> None:
        await two_factor_configs.save(
            TwoFactorConfig(
                username="alice",
                method=TwoFactorMethod.SMS,
                phone_number="+15550100",
                backup_code_hashes=["h1", "h2"],
            )
        )
        await two_factor_configs.consume_backup_code("alice", "h1")

        assert await two_factor_configs.set_enabled("alice", True, False, T0) is True

        config = await two_factor_configs.get("alice")
        assert (config.enabled, config.requires_setup) == (True, False)
        assert config.updated_at == T0
        assert config.phone_number == "+15550100"
        assert config.backup_code_hashes == ["h2"]

    @pytest.mark.asyncio
    async def test_unknown_user(self, two_factor_configs) -> None:
        assert await two_factor_configs.get("ghost") is None
        assert await two_factor_configs.consume_backup_code("ghost", "h1") is False
        assert await two_factor_configs.set_enabled("ghost", True, False, T0) is False


@pytest.mark.asyncio
async def test_role_repository_round_trip() -> None:
    roles = InMemoryRoleRepository()
    await roles.add(Role(name="USER", description="Default user role"))

    assert (await roles.get_by_name("USER")).description == "Default user role"
    assert await roles.get_by_name("ADMIN") is None
