"""Login orchestration: gates, credential check, second factor and token.

Gate order for ``authenticate``::

    Captcha -> Suspicion -> Lock -> Credentials -> Second factor -> Token

Every rejection after the CAPTCHA gate appends exactly one failed attempt
record. A second-factor challenge appends nothing and issues no token.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .config import AuthConfig
from .exceptions import (
    AccountLockedError,
    AccountNotFoundError,
    AuthError,
    CaptchaFailedError,
    DuplicateEmailError,
    DuplicateUsernameError,
    InfrastructureError,
    InvalidCredentialsError,
    InvalidTwoFactorCodeError,
    RiskAuthError,
    SuspiciousActivityError,
    TokenIssuanceError,
    TwoFactorError,
)
from .models import Account, AuthResult, Role, TwoFactorChallenge, TwoFactorMethod

if TYPE_CHECKING:
    from .mfa.service import TwoFactorService
    from .models import LoginRequest, TwoFactorSetupResult
    from .ports import (
        IAccountRepository,
        ICaptchaVerifier,
        IPasswordHasher,
        IRoleRepository,
        ITokenIssuer,
    )
    from .risk import RiskEngine
    from .strategies import StrategyRegistry

logger = logging.getLogger("riskauth.orchestrator")


class LoginOrchestrator:
    """Entry point for login, registration and two-factor management.

    Example:
        ```python
        result = await orchestrator.authenticate(
            LoginRequest(username="alice", password="pw", ip_address="10.0.0.1")
        )
        if isinstance(result, TwoFactorChallenge):
            # ask the user for a code, then call authenticate again with it
            ...
        ```
    """

    def __init__(
        self,
        *,
        accounts: IAccountRepository,
        roles: IRoleRepository,
        risk: RiskEngine,
        strategies: StrategyRegistry,
        two_factor: TwoFactorService,
        token_issuer: ITokenIssuer,
        password_hasher: IPasswordHasher,
        captcha: ICaptchaVerifier | None = None,
        config: AuthConfig | None = None,
    ) -> None:
        self.accounts = accounts
        self.roles = roles
        self.risk = risk
        self.strategies = strategies
        self.two_factor = two_factor
        self.token_issuer = token_issuer
        self.password_hasher = password_hasher
        self.captcha = captcha
        self.config = config or AuthConfig()

    # ───────────────────────────────────────────────────────────
    # Login
    # ───────────────────────────────────────────────────────────

    async def authenticate(
        self, request: LoginRequest
    ) -> AuthResult | TwoFactorChallenge:
        """Run a login attempt through every gate.

        Returns:
            ``AuthResult`` with a token, or ``TwoFactorChallenge`` when the
            account needs a second factor and none was supplied.

        Raises:
            CaptchaFailedError: CAPTCHA rejected (nothing recorded).
            SuspiciousActivityError: Risk engine flagged the attempt.
            AccountLockedError: Account is locked.
            UnsupportedMethodError: Unknown or disabled method.
            InvalidCredentialsError: Credentials rejected or account missing.
            InvalidTwoFactorCodeError: Second factor rejected.
            InfrastructureError: A collaborator failed; nothing is recorded
                for the failure itself.
        """
        try:
            return await self._authenticate(request)
        except RiskAuthError:
            raise
        except Exception as err:
            logger.exception(
                "Login for %s aborted by collaborator failure", request.username
            )
            raise InfrastructureError("Authentication could not be completed") from err

    async def _authenticate(
        self, request: LoginRequest
    ) -> AuthResult | TwoFactorChallenge:
        username = request.username

        if self.captcha is not None and not await self.captcha.verify(
            request.captcha_token, request.ip_address
        ):
            logger.info("CAPTCHA rejected for %s from %s", username, request.ip_address)
            raise CaptchaFailedError()

        if await self.risk.is_suspicious_activity(username, request.ip_address):
            await self._record_failure(request, "Suspicious activity detected")
            raise SuspiciousActivityError()

        if await self.risk.is_account_locked(username):
            await self._record_failure(request, "Account locked")
            raise AccountLockedError(lockout_duration=self.risk.lockout_seconds())

        try:
            strategy = self.strategies.resolve(request.auth_method)
            identity = await strategy.authenticate(username, request.password)
        except AuthError as err:
            await self._record_failure(request, str(err))
            raise

        account = await self._find_account(identity.username)
        if account is None:
            await self._record_failure(request, "User not found")
            raise InvalidCredentialsError("User not found")

        if account.two_factor_enabled:
            code = (request.two_factor_code or "").strip()
            if not code:
                try:
                    return await self._challenge(account)
                except TwoFactorError as err:
                    await self._record_failure(request, str(err))
                    raise
            try:
                verified = await self.two_factor.verify(
                    account, code, use_backup_code=self.two_factor.is_backup_code(code)
                )
            except TwoFactorError as err:
                await self._record_failure(request, str(err))
                raise
            if not verified:
                await self._record_failure(request, "Invalid 2FA code")
                raise InvalidTwoFactorCodeError("Invalid 2FA code")

        auth_method = strategy.method_name.upper()
        token = await self._issue_token(account, auth_method)

        await self.risk.record_attempt(
            username, request.ip_address, request.user_agent, True
        )
        await self.risk.handle_successful_login(account.username)
        logger.info("User %s authenticated via %s", account.username, auth_method)

        return AuthResult(
            token=token,
            username=account.username,
            email=account.email,
            roles=account.role_names(),
            privileges=account.privilege_names(),
            auth_method=auth_method,
        )

    async def _challenge(self, account: Account) -> TwoFactorChallenge:
        method = await self.two_factor.configured_method(account)
        if method is not TwoFactorMethod.TOTP:
            await self.two_factor.send_code(account)
        logger.info("2FA challenge (%s) issued to %s", method.value, account.username)
        return TwoFactorChallenge(username=account.username, method=method)

    async def _issue_token(self, account: Account, auth_method: str) -> str:
        try:
            return await self.token_issuer.issue(account, auth_method)
        except RiskAuthError:
            raise
        except Exception as err:
            raise TokenIssuanceError(
                f"Token issuance failed for {account.username}"
            ) from err

    async def _record_failure(self, request: LoginRequest, reason: str) -> None:
        await self.risk.record_attempt(
            request.username,
            request.ip_address,
            request.user_agent,
            False,
            reason,
        )
        logger.info(
            "Login failed for %s from %s: %s",
            request.username,
            request.ip_address,
            reason,
        )

    # ───────────────────────────────────────────────────────────
    # Registration
    # ───────────────────────────────────────────────────────────

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        full_name: str = "",
    ) -> Account:
        """Create an active account with the default role.

        Raises:
            DuplicateUsernameError: Username taken.
            DuplicateEmailError: Email taken.
            ValueError: Empty password.
        """
        if await self.accounts.exists_by_username(username):
            raise DuplicateUsernameError()
        if await self.accounts.exists_by_email(email):
            raise DuplicateEmailError()

        account = Account(
            username=username,
            email=email,
            password_hash=self.password_hasher.hash(password),
            full_name=full_name,
            roles=[await self._default_role()],
        )
        await self.accounts.add(account)
        logger.info("Registered account %s", username)
        return account

    async def _default_role(self) -> Role:
        role = await self.roles.get_by_name(self.config.default_role)
        if role is None:
            role = Role(
                name=self.config.default_role,
                description=self.config.default_role_description,
            )
            await self.roles.add(role)
            logger.info("Created default role %s", role.name)
        return role

    # ───────────────────────────────────────────────────────────
    # Two-factor management
    # ───────────────────────────────────────────────────────────

    async def setup_two_factor(
        self,
        username: str,
        method: str | TwoFactorMethod,
        phone_number: str | None = None,
    ) -> TwoFactorSetupResult:
        account = await self._require_account(username)
        return await self.two_factor.setup(account, method, phone_number)

    async def enable_two_factor(self, username: str, code: str) -> None:
        account = await self._require_account(username)
        await self.two_factor.enable(account, code)

    async def disable_two_factor(self, username: str) -> None:
        account = await self._require_account(username)
        await self.two_factor.disable(account)

    async def verify_two_factor(
        self, username: str, code: str, use_backup_code: bool = False
    ) -> bool:
        account = await self._require_account(username)
        return await self.two_factor.verify(account, code, use_backup_code)

    async def send_two_factor_code(self, username: str) -> TwoFactorMethod:
        account = await self._require_account(username)
        return await self.two_factor.send_code(account)

    async def remaining_backup_codes(self, username: str) -> int:
        account = await self._require_account(username)
        return await self.two_factor.remaining_backup_codes(account)

    async def _require_account(self, username: str) -> Account:
        account = await self.accounts.get_by_username(username)
        if account is None:
            raise AccountNotFoundError(username)
        return account

    async def _find_account(self, login: str) -> Account | None:
        account = await self.accounts.get_by_username(login)
        if account is None:
            account = await self.accounts.get_by_email(login)
        return account


__all__: list[str] = ["LoginOrchestrator"]
