"""Factory for wiring a complete login orchestrator.

Any collaborator left out is replaced by its in-memory or development
adapter, which makes the factory suitable for tests and single-process
deployments. Production code passes real adapters for every store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import AuthConfig
from .delivery import LoggingCodeDelivery
from .hasher import PasswordHasher
from .ledger import InMemoryAttemptLedger
from .memory import (
    InMemoryAccountRepository,
    InMemoryRoleRepository,
    InMemoryTwoFactorRepository,
)
from .mfa import InMemoryOtpChallengeStore, TwoFactorService
from .orchestrator import LoginOrchestrator
from .risk import RiskEngine
from .strategies import (
    BasicPasswordStrategy,
    DirectoryStrategy,
    JwtPasswordStrategy,
    StrategyRegistry,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from .ports import (
        IAccountRepository,
        IAttemptLedger,
        ICaptchaVerifier,
        ICodeDeliveryChannel,
        IDirectoryBindProvider,
        IOtpChallengeStore,
        IPasswordHasher,
        IRoleRepository,
        ITokenIssuer,
        ITwoFactorRepository,
    )


def create_login_orchestrator(
    *,
    token_issuer: ITokenIssuer,
    config: AuthConfig | None = None,
    accounts: IAccountRepository | None = None,
    roles: IRoleRepository | None = None,
    ledger: IAttemptLedger | None = None,
    two_factor_configs: ITwoFactorRepository | None = None,
    challenge_store: IOtpChallengeStore | None = None,
    password_hasher: IPasswordHasher | None = None,
    delivery: ICodeDeliveryChannel | None = None,
    directory: IDirectoryBindProvider | None = None,
    captcha: ICaptchaVerifier | None = None,
    clock: Callable[[], datetime] | None = None,
) -> LoginOrchestrator:
    """Build a ``LoginOrchestrator`` with its risk engine, strategies and 2FA.

    Strategies are registered in the order JWT, BASIC, LDAP; LDAP only
    resolves when ``config.ldap_enabled`` is set and ``directory`` is given.

    Example:
        ```python
        orchestrator = create_login_orchestrator(
            token_issuer=JwtTokenIssuer(secret=secret),
            config=AuthConfig.from_env(),
        )
        await orchestrator.register("alice", "alice@example.com", "pw")
        ```
    """
    config = config if config is not None else AuthConfig()
    if accounts is None:
        accounts = InMemoryAccountRepository()
    hasher = password_hasher if password_hasher is not None else PasswordHasher()
    clock_kwargs = {"clock": clock} if clock is not None else {}

    risk = RiskEngine(
        accounts=accounts,
        ledger=ledger if ledger is not None else InMemoryAttemptLedger(),
        config=config.risk,
        **clock_kwargs,
    )
    strategies = StrategyRegistry(
        [
            JwtPasswordStrategy(accounts=accounts, password_hasher=hasher),
            BasicPasswordStrategy(accounts=accounts, password_hasher=hasher),
            DirectoryStrategy(bind_provider=directory, enabled=config.ldap_enabled),
        ],
        default_method=config.default_auth_method,
    )
    two_factor = TwoFactorService(
        accounts=accounts,
        configs=(
            two_factor_configs
            if two_factor_configs is not None
            else InMemoryTwoFactorRepository()
        ),
        challenge_store=(
            challenge_store
            if challenge_store is not None
            else InMemoryOtpChallengeStore(**clock_kwargs)
        ),
        delivery=delivery if delivery is not None else LoggingCodeDelivery(),
        hasher=hasher,
        settings=config.two_factor,
        otp_config=config.otp,
        **clock_kwargs,
    )
    return LoginOrchestrator(
        accounts=accounts,
        roles=roles if roles is not None else InMemoryRoleRepository(),
        risk=risk,
        strategies=strategies,
        two_factor=two_factor,
        token_issuer=token_issuer,
        password_hasher=hasher,
        captcha=captcha,
        config=config,
    )


__all__: list[str] = ["create_login_orchestrator"]
