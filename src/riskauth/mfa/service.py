"""Two-factor lifecycle: setup, enable, disable, verify and code delivery.

Per-account state machine::

    NotConfigured --setup--> Configured --enable(code)--> Enabled
    Enabled --disable--> Configured (material kept, fresh setup required)
    any --setup--> Configured/Enabled (material replaced)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from ..config import OtpConfig, TwoFactorSettings
from ..exceptions import (
    CodeDeliveryError,
    InvalidTwoFactorCodeError,
    MissingPhoneNumberError,
    TwoFactorNotConfiguredError,
    UnsupportedTwoFactorMethodError,
)
from ..models import TwoFactorConfig, TwoFactorMethod, TwoFactorSetupResult, utcnow
from .backup_codes import BackupCodeGenerator
from .otp import challenge_key, generate_numeric_code
from .totp import TotpService

if TYPE_CHECKING:
    from ..models import Account
    from ..ports import (
        IAccountRepository,
        ICodeDeliveryChannel,
        IOtpChallengeStore,
        IPasswordHasher,
        ITwoFactorRepository,
    )

logger = logging.getLogger("riskauth.mfa")


class TwoFactorService:
    """Manages an account's second factor.

    Every operation receives the account explicitly; the service never
    resolves a "current user" on its own.

    Example:
        ```python
        service = TwoFactorService(
            accounts=accounts,
            configs=InMemoryTwoFactorRepository(),
            challenge_store=InMemoryOtpChallengeStore(),
            delivery=LoggingCodeDelivery(),
            hasher=PasswordHasher(),
        )
        setup = await service.setup(account, "TOTP")
        await service.enable(account, pyotp.TOTP(setup.secret).now())
        ```
    """

    def __init__(
        self,
        *,
        accounts: IAccountRepository,
        configs: ITwoFactorRepository,
        challenge_store: IOtpChallengeStore,
        delivery: ICodeDeliveryChannel,
        hasher: IPasswordHasher,
        settings: TwoFactorSettings | None = None,
        otp_config: OtpConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the service.

        Args:
            accounts: Account repository; receives the enabled flag mirror.
            configs: Two-factor configuration repository.
            challenge_store: Store for SMS/email challenges.
            delivery: Channel that dispatches SMS/email codes.
            hasher: Hasher for backup codes.
            settings: TOTP and backup code parameters.
            otp_config: SMS/email code parameters.
            clock: UTC time source.
        """
        self.accounts = accounts
        self.configs = configs
        self.challenge_store = challenge_store
        self.delivery = delivery
        self.settings = settings or TwoFactorSettings()
        self.otp_config = otp_config or OtpConfig()
        self.clock = clock
        self.totp = TotpService(
            issuer=self.settings.issuer,
            digits=self.settings.totp_digits,
            interval=self.settings.totp_interval,
            valid_window=self.settings.totp_valid_window,
        )
        self.backup_codes = BackupCodeGenerator(
            hasher=hasher,
            count=self.settings.backup_code_count,
            code_length=self.settings.backup_code_length,
        )

    async def setup(
        self,
        account: Account,
        method: str | TwoFactorMethod,
        phone_number: str | None = None,
    ) -> TwoFactorSetupResult:
        """Create or replace the account's two-factor material.

        Always regenerates the backup codes. The plaintext codes and TOTP
        secret are returned once and never again.

        Raises:
            UnsupportedTwoFactorMethodError: Unknown method.
            MissingPhoneNumberError: SMS without a phone number.
        """
        chosen = TwoFactorMethod.parse(method)
        existing = await self.configs.get(account.username)
        now = self.clock()

        secret: str | None = None
        provisioning_uri: str | None = None
        manual_key: str | None = None
        phone: str | None = None
        if chosen is TwoFactorMethod.TOTP:
            totp_setup = self.totp.setup(account.username)
            secret = totp_setup.secret
            provisioning_uri = totp_setup.provisioning_uri
            manual_key = totp_setup.manual_key
            message = "Scan the QR code with your authenticator app"
        elif chosen is TwoFactorMethod.SMS:
            phone = (phone_number or "").strip()
            if not phone:
                raise MissingPhoneNumberError()
            message = f"SMS verification will be sent to {phone}"
        else:
            message = f"Email verification will be sent to {account.email}"

        codes = self.backup_codes.generate()
        enabled = existing.enabled if existing else False
        config = TwoFactorConfig(
            username=account.username,
            method=chosen,
            enabled=enabled,
            secret=secret,
            phone_number=phone,
            backup_code_hashes=self.backup_codes.hash_all(codes),
            requires_setup=False,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        await self.configs.save(config)
        if existing is not None:
            await self.challenge_store.delete(
                challenge_key(account.username, existing.method.value)
            )
        if enabled:
            await self.accounts.set_two_factor(account.username, True, chosen)

        logger.info("2FA %s configured for %s", chosen.value, account.username)
        return TwoFactorSetupResult(
            method=chosen,
            secret=secret,
            provisioning_uri=provisioning_uri,
            manual_key=manual_key,
            message=message,
            backup_codes=tuple(codes),
        )

    async def enable(self, account: Account, code: str) -> None:
        """Turn on two-factor after proving possession of the factor.

        Raises:
            TwoFactorNotConfiguredError: No usable configuration.
            InvalidTwoFactorCodeError: The code does not verify.
        """
        config = await self.configs.get(account.username)
        if config is None or config.requires_setup:
            raise TwoFactorNotConfiguredError()

        if not await self._verify_primary(account, config, code):
            raise InvalidTwoFactorCodeError("Invalid verification code")

        await self.configs.set_enabled(
            account.username, True, requires_setup=False, now=self.clock()
        )
        await self.accounts.set_two_factor(account.username, True, config.method)
        logger.info("2FA enabled for %s", account.username)

    async def disable(self, account: Account) -> None:
        """Turn off two-factor; stored material is kept."""
        config = await self.configs.get(account.username)
        if config is not None:
            await self.configs.set_enabled(
                account.username,
                False,
                requires_setup=self.settings.require_setup_after_disable,
                now=self.clock(),
            )
            await self.challenge_store.delete(
                challenge_key(account.username, config.method.value)
            )
        await self.accounts.set_two_factor(account.username, False, None)
        logger.info("2FA disabled for %s", account.username)

    async def verify(
        self, account: Account, code: str, use_backup_code: bool = False
    ) -> bool:
        """Check a second-factor code.

        A matching backup code is consumed. SMS and email codes must match
        the challenge issued by ``send_code``.

        Raises:
            TwoFactorNotConfiguredError: The account has no configuration.
        """
        config = await self.configs.get(account.username)
        if config is None:
            raise TwoFactorNotConfiguredError()

        if use_backup_code:
            return await self._consume_backup_code(account, config, code)
        return await self._verify_primary(account, config, code)

    async def send_code(self, account: Account) -> TwoFactorMethod:
        """Issue and deliver a one-time code for SMS or email accounts.

        Returns:
            The method the code was sent through.

        Raises:
            TwoFactorNotConfiguredError: The account has no configuration.
            UnsupportedTwoFactorMethodError: TOTP accounts cannot be sent codes.
            CodeDeliveryError: The channel failed.
        """
        config = await self.configs.get(account.username)
        if config is None:
            raise TwoFactorNotConfiguredError()

        if config.method is TwoFactorMethod.TOTP:
            raise UnsupportedTwoFactorMethodError(
                config.method.value,
                f"Cannot send code for method: {config.method.value}",
            )

        code = generate_numeric_code(self.otp_config.code_length)
        key = challenge_key(account.username, config.method.value)
        await self.challenge_store.create(key, code, ttl=self.otp_config.ttl_seconds)

        try:
            if config.method is TwoFactorMethod.SMS:
                if not config.phone_number:
                    raise MissingPhoneNumberError()
                await self.delivery.send_sms(config.phone_number, code)
            else:
                await self.delivery.send_email(account.email, code)
        except (CodeDeliveryError, MissingPhoneNumberError):
            await self.challenge_store.delete(key)
            raise
        except Exception as err:
            await self.challenge_store.delete(key)
            raise CodeDeliveryError(
                f"Failed to send {config.method.value} code to {account.username}"
            ) from err

        logger.info("2FA %s code sent to %s", config.method.value, account.username)
        return config.method

    async def configured_method(self, account: Account) -> TwoFactorMethod:
        """The method a login challenge should use.

        Raises:
            TwoFactorNotConfiguredError: The account has no configuration.
        """
        config = await self.configs.get(account.username)
        if config is None:
            raise TwoFactorNotConfiguredError()
        return config.method

    async def remaining_backup_codes(self, account: Account) -> int:
        config = await self.configs.get(account.username)
        return len(config.backup_code_hashes) if config else 0

    def is_backup_code(self, code: str) -> bool:
        """Backup codes are told apart from primary codes by length."""
        return self.backup_codes.looks_like_backup_code(code)

    async def _verify_primary(
        self, account: Account, config: TwoFactorConfig, code: str
    ) -> bool:
        if config.method is TwoFactorMethod.TOTP:
            return self.totp.verify(config.secret or "", code)
        if config.method in (TwoFactorMethod.SMS, TwoFactorMethod.EMAIL):
            return await self.challenge_store.verify(
                challenge_key(account.username, config.method.value),
                code,
                max_attempts=self.otp_config.max_attempts,
            )
        return False

    async def _consume_backup_code(
        self, account: Account, config: TwoFactorConfig, code: str
    ) -> bool:
        matched = self.backup_codes.find_match(code, config.backup_code_hashes)
        if matched is None:
            return False
        consumed = await self.configs.consume_backup_code(account.username, matched)
        if consumed:
            logger.info("Backup code used by %s", account.username)
        return consumed


__all__: list[str] = ["TwoFactorService"]
