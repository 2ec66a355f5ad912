"""Test configuration and fixtures."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from riskauth import (
    AuthConfig,
    InMemoryAccountRepository,
    InMemoryAttemptLedger,
    InMemoryTwoFactorRepository,
    JwtTokenIssuer,
    LoginOrchestrator,
    PasswordHasher,
    create_login_orchestrator,
)
from riskauth.mfa import InMemoryOtpChallengeStore

TEST_JWT_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingDelivery:
    """Delivery channel that records every code it is asked to send."""

    def __init__(self) -> None:
        self.sms_sent: list[tuple[str, str]] = []
        self.emails_sent: list[tuple[str, str]] = []

    async def send_sms(self, phone_number: str, code: str) -> None:
        self.sms_sent.append((phone_number, code))

    async def send_email(self, email: str, code: str) -> None:
        self.emails_sent.append((email, code))

    @property
    def total(self) -> int:
        return len(self.sms_sent) + len(self.emails_sent)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def hasher() -> PasswordHasher:
    """Low-cost hasher so tests stay fast."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def accounts() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def ledger() -> InMemoryAttemptLedger:
    return InMemoryAttemptLedger()


@pytest.fixture
def two_factor_configs() -> InMemoryTwoFactorRepository:
    return InMemoryTwoFactorRepository()


@pytest.fixture
def challenge_store(clock: FakeClock) -> InMemoryOtpChallengeStore:
    return InMemoryOtpChallengeStore(clock=clock)


@pytest.fixture
def delivery() -> RecordingDelivery:
    return RecordingDelivery()


@pytest.fixture
def token_issuer(clock: FakeClock) -> JwtTokenIssuer:
    return JwtTokenIssuer(secret=TEST_JWT_SECRET, clock=clock)


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig()


@pytest.fixture
def orchestrator(
    auth_config: AuthConfig,
    accounts: InMemoryAccountRepository,
    ledger: InMemoryAttemptLedger,
    two_factor_configs: InMemoryTwoFactorRepository,
    challenge_store: InMemoryOtpChallengeStore,
    hasher: PasswordHasher,
    delivery: RecordingDelivery,
    token_issuer: JwtTokenIssuer,
    clock: FakeClock,
) -> LoginOrchestrator:
    return create_login_orchestrator(
        token_issuer=token_issuer,
        config=auth_config,
        accounts=accounts,
        ledger=ledger,
        two_factor_configs=two_factor_configs,
        challenge_store=challenge_store,
        password_hasher=hasher,
        delivery=delivery,
        clock=clock,
    )
