"""Tests for two-factor services (TOTP, one-time codes, backup codes)."""

from __future__ import annotations

import asyncio
import logging

import pytest
import pytest_asyncio

from riskauth import (
    Account,
    CodeDeliveryError,
    InMemoryTwoFactorRepository,
    InvalidTwoFactorCodeError,
    LoggingCodeDelivery,
    MissingPhoneNumberError,
    TwoFactorMethod,
    TwoFactorNotConfiguredError,
    TwoFactorService,
    UnsupportedTwoFactorMethodError,
)
from riskauth.mfa import (
    BackupCodeGenerator,
    InMemoryOtpChallengeStore,
    TotpService,
    challenge_key,
    generate_numeric_code,
)


class YieldingConfigs(InMemoryTwoFactorRepository):
    """Repository that yields to the event loop on every read, like a real store."""

    async def get(self, username: str):
        config = await super().get(username)
        await asyncio.sleep(0)
        return config


class BrokenDelivery:
    async def send_sms(self, phone_number: str, code: str) -> None:
        raise ConnectionError("SMS gateway down")

    async def send_email(self, email: str, code: str) -> None:
        raise ConnectionError("SMTP down")


@pytest_asyncio.fixture
async def alice(accounts) -> Account:
    account = Account(username="alice", email="alice@example.com", password_hash="x")
    await accounts.add(account)
    return account


@pytest.fixture
def service(
    accounts, two_factor_configs, challenge_store, delivery, hasher, clock
) -> TwoFactorService:
    return TwoFactorService(
        accounts=accounts,
        configs=two_factor_configs,
        challenge_store=challenge_store,
        delivery=delivery,
        hasher=hasher,
        clock=clock,
    )


class TestTotpService:
    """Test TOTP service."""

    @pytest.fixture
    def pyotp(self):
        return pytest.importorskip("pyotp")

    @pytest.fixture
    def totp_service(self, pyotp) -> TotpService:
        return TotpService(issuer="AuthApp")

    def test_setup_totp(self, totp_service: TotpService) -> None:
        """Test TOTP setup generates a valid secret and URI."""
        setup = totp_service.setup("alice")

        assert setup.secret
        assert setup.provisioning_uri.startswith("otpauth://totp/")
        assert "issuer=AuthApp" in setup.provisioning_uri
        assert "alice" in setup.provisioning_uri
        assert setup.manual_key.replace(" ", "") == setup.secret.rstrip("=")

    def test_verify_current_code(self, totp_service: TotpService, pyotp) -> None:
        setup = totp_service.setup("alice")
        assert totp_service.verify(setup.secret, pyotp.TOTP(setup.secret).now())

    def test_reject_malformed_codes(self, totp_service: TotpService) -> None:
        setup = totp_service.setup("alice")
        assert not totp_service.verify(setup.secret, "abc123")
        assert not totp_service.verify(setup.secret, "1234567")
        assert not totp_service.verify("", "123456")


class TestBackupCodeGenerator:
    @pytest.fixture
    def generator(self, hasher) -> BackupCodeGenerator:
        return BackupCodeGenerator(hasher=hasher)

    def test_generates_ten_distinct_numeric_codes(self, generator) -> None:
        codes = generator.generate()

        assert len(codes) == 10
        assert len(set(codes)) == 10
        assert all(len(c) == 8 and c.isdigit() for c in codes)

    def test_hashes_never_equal_plaintext(self, generator) -> None:
        codes = generator.generate()
        hashes = generator.hash_all(codes)

        assert all(h not in codes for h in hashes)
        assert generator.find_match(codes[3], hashes) == hashes[3]

    @pytest.mark.parametrize(
        ("code", "expected"),
        [("12345678", True), ("1234-5678", True), ("1234 5678", True), ("123456", False)],
    )
    def test_recognises_backup_code_shape(self, generator, code, expected) -> None:
        assert generator.looks_like_backup_code(code) is expected

    def test_normalizes_separators(self, generator) -> None:
        codes = generator.generate()
        hashes = generator.hash_all(codes)
        typed = f"{codes[0][:4]}-{codes[0][4:]} "

        assert generator.find_match(typed, hashes) == hashes[0]
        assert generator.find_match("", hashes) is None


class TestOtpChallengeStore:
    """Test bound one-time code challenges."""

    @pytest.mark.asyncio
    async def test_code_is_consumed_once(self, challenge_store) -> None:
        await challenge_store.create("k", "123456")

        assert await challenge_store.verify("k", "123456") is True
        assert await challenge_store.verify("k", "123456") is False

    @pytest.mark.asyncio
    async def test_attempt_limit_burns_challenge(self, challenge_store) -> None:
        await challenge_store.create("k", "123456")

        for _ in range(3):
            assert await challenge_store.verify("k", "000000", max_attempts=3) is False
        assert await challenge_store.verify("k", "123456", max_attempts=3) is False

    @pytest.mark.asyncio
    async def test_expired_challenge(self, challenge_store) -> None:
        await challenge_store.create("k", "123456", ttl=-1)
        assert await challenge_store.verify("k", "123456") is False

    @pytest.mark.asyncio
    async def test_ttl_follows_injected_clock(self, challenge_store, clock) -> None:
        await challenge_store.create("k", "123456", ttl=300)
        await challenge_store.create("j", "654321", ttl=300)
        clock.advance(seconds=299)

        assert await challenge_store.verify("k", "123456") is True

        clock.advance(seconds=1)
        assert await challenge_store.verify("j", "654321") is False

    @pytest.mark.asyncio
    async def test_unknown_identifier(self) -> None:
        store = InMemoryOtpChallengeStore()
        assert await store.verify("missing", "123456") is False

    def test_generate_numeric_code(self) -> None:
        code = generate_numeric_code(6)
        assert len(code) == 6
        assert code.isdigit()


class TestSetup:
    @pytest.mark.asyncio
    async def test_email_setup(self, service, alice, two_factor_configs) -> None:
        """Test setup returns ten codes and stores only their hashes."""
        result = await service.setup(alice, "email")

        assert result.method is TwoFactorMethod.EMAIL
        assert result.secret is None
        assert result.message == "Email verification will be sent to alice@example.com"
        assert len(result.backup_codes) == 10

        config = await two_factor_configs.get("alice")
        assert config.enabled is False
        assert len(config.backup_code_hashes) == 10
        assert not set(config.backup_code_hashes) & set(result.backup_codes)

    @pytest.mark.asyncio
    async def test_sms_requires_phone(self, service, alice) -> None:
        with pytest.raises(MissingPhoneNumberError, match="Phone number is required"):
            await service.setup(alice, "SMS", phone_number="  ")

    @pytest.mark.asyncio
    async def test_unsupported_method(self, service, alice) -> None:
        with pytest.raises(UnsupportedTwoFactorMethodError, match="Unsupported 2FA method: PUSH"):
            await service.setup(alice, "PUSH")

    @pytest.mark.asyncio
    async def test_totp_setup(self, service, alice, two_factor_configs) -> None:
        pytest.importorskip("pyotp")
        result = await service.setup(alice, TwoFactorMethod.TOTP)

        assert result.provisioning_uri.startswith("otpauth://totp/")
        assert (await two_factor_configs.get("alice")).secret == result.secret

    @pytest.mark.asyncio
    async def test_setup_regenerates_backup_codes(
        self, service, alice, two_factor_configs
    ) -> None:
        first = await service.setup(alice, "EMAIL")
        second = await service.setup(alice, "EMAIL")

        assert set(first.backup_codes) != set(second.backup_codes)
        assert await service.verify(alice, first.backup_codes[0], use_backup_code=True) is False


class TestEnableDisable:
    @pytest.mark.asyncio
    async def test_enable_without_setup(self, service, alice) -> None:
        with pytest.raises(TwoFactorNotConfiguredError, match="2FA not setup"):
            await service.enable(alice, "123456")

    @pytest.mark.asyncio
    async def test_enable_with_wrong_code(self, service, alice) -> None:
        await service.setup(alice, "EMAIL")
        await service.send_code(alice)

        with pytest.raises(InvalidTwoFactorCodeError, match="Invalid verification code"):
            await service.enable(alice, "not-it")

    @pytest.mark.asyncio
    async def test_enable_mirrors_to_account(
        self, service, alice, accounts, delivery, two_factor_configs
    ) -> None:
        await service.setup(alice, "SMS", phone_number="+15550100")
        await service.send_code(alice)

        await service.enable(alice, delivery.sms_sent[-1][1])

        stored = await accounts.get_by_username("alice")
        assert stored.two_factor_enabled is True
        assert stored.two_factor_method is TwoFactorMethod.SMS
        assert (await two_factor_configs.get("alice")).enabled is True

    @pytest.mark.asyncio
    async def test_reenable_after_disable_requires_setup(
        self, service, alice, delivery, two_factor_configs
    ) -> None:
        """Test disabled material cannot be re-enabled without a fresh setup."""
        setup = await service.setup(alice, "EMAIL")
        await service.send_code(alice)
        await service.enable(alice, delivery.emails_sent[-1][1])

        await service.disable(alice)

        config = await two_factor_configs.get("alice")
        assert config.enabled is False
        assert config.requires_setup is True
        assert len(config.backup_code_hashes) == len(setup.backup_codes)
        with pytest.raises(TwoFactorNotConfiguredError):
            await service.enable(alice, "123456")

        await service.setup(alice, "EMAIL")
        await service.send_code(alice)
        await service.enable(alice, delivery.emails_sent[-1][1])
        assert (await two_factor_configs.get("alice")).enabled is True


class TestVerify:
    @pytest.mark.asyncio
    async def test_without_config(self, service, alice) -> None:
        with pytest.raises(TwoFactorNotConfiguredError):
            await service.verify(alice, "123456")

    @pytest.mark.asyncio
    async def test_backup_code_is_single_use(self, service, alice) -> None:
        setup = await service.setup(alice, "EMAIL")
        code = setup.backup_codes[0]

        assert await service.verify(alice, code, use_backup_code=True) is True
        assert await service.verify(alice, code, use_backup_code=True) is False
        assert await service.remaining_backup_codes(alice) == 9

    @pytest.mark.asyncio
    async def test_concurrent_backup_code_use(self, service, alice) -> None:
        """Test two parallel uses of one backup code succeed at most once."""
        setup = await service.setup(alice, "EMAIL")
        code = setup.backup_codes[5]

        results = await asyncio.gather(
            service.verify(alice, code, use_backup_code=True),
            service.verify(alice, code, use_backup_code=True),
        )

        assert sorted(results) == [False, True]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("toggle", ["enable", "disable"])
    async def test_backup_code_stays_spent_while_toggling(
        self, accounts, challenge_store, delivery, hasher, clock, alice, toggle
    ) -> None:
        """Test enabling or disabling never restores a code spent meanwhile."""
        service = TwoFactorService(
            accounts=accounts,
            configs=YieldingConfigs(),
            challenge_store=challenge_store,
            delivery=delivery,
            hasher=hasher,
            clock=clock,
        )
        setup = await service.setup(alice, "EMAIL")
        await service.send_code(alice)
        code = delivery.emails_sent[-1][1]
        if toggle == "disable":
            await service.enable(alice, code)
            other = service.disable(alice)
        else:
            other = service.enable(alice, code)
        backup = setup.backup_codes[2]

        first, _ = await asyncio.gather(
            service.verify(alice, backup, use_backup_code=True), other
        )

        assert first is True
        assert await service.verify(alice, backup, use_backup_code=True) is False
        assert await service.remaining_backup_codes(alice) == 9

    @pytest.mark.asyncio
    async def test_unbound_email_code_rejected(self, service, alice) -> None:
        """Test a well-formed code is rejected when no challenge was issued."""
        await service.setup(alice, "EMAIL")
        assert await service.verify(alice, "123456") is False

    @pytest.mark.asyncio
    async def test_email_code_bound_to_challenge(self, service, alice, delivery) -> None:
        await service.setup(alice, "EMAIL")
        await service.send_code(alice)
        email, code = delivery.emails_sent[-1]

        assert email == "alice@example.com"
        assert await service.verify(alice, code) is True
        assert await service.verify(alice, code) is False


class TestSendCode:
    @pytest.mark.asyncio
    async def test_requires_config(self, service, alice) -> None:
        with pytest.raises(TwoFactorNotConfiguredError):
            await service.send_code(alice)

    @pytest.mark.asyncio
    async def test_totp_cannot_be_sent(self, service, alice) -> None:
        pytest.importorskip("pyotp")
        await service.setup(alice, "TOTP")

        with pytest.raises(UnsupportedTwoFactorMethodError, match="Cannot send code for method: TOTP"):
            await service.send_code(alice)

    @pytest.mark.asyncio
    async def test_sms_goes_to_phone(self, service, alice, delivery) -> None:
        await service.setup(alice, "SMS", phone_number="+15550100")

        method = await service.send_code(alice)

        assert method is TwoFactorMethod.SMS
        phone, code = delivery.sms_sent[-1]
        assert phone == "+15550100"
        assert len(code) == 6 and code.isdigit()

    @pytest.mark.asyncio
    async def test_delivery_failure(
        self, accounts, two_factor_configs, challenge_store, hasher, alice
    ) -> None:
        """Test channel errors surface as CodeDeliveryError and leave no challenge."""
        service = TwoFactorService(
            accounts=accounts,
            configs=two_factor_configs,
            challenge_store=challenge_store,
            delivery=BrokenDelivery(),
            hasher=hasher,
        )
        await service.setup(alice, "EMAIL")

        with pytest.raises(CodeDeliveryError) as exc_info:
            await service.send_code(alice)

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert challenge_key("alice", "EMAIL") not in challenge_store._challenges


class TestLoggingCodeDelivery:
    @pytest.mark.asyncio
    async def test_logs_code(self, caplog) -> None:
        delivery = LoggingCodeDelivery()

        with caplog.at_level(logging.INFO, logger="riskauth.delivery"):
            await delivery.send_sms("+15550100", "424242")

        assert "2FA CODE SENT VIA SMS" in caplog.text
        assert "424242" in caplog.text
