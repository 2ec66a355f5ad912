"""Authentication strategy protocol and the local password strategies."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ..exceptions import AccountLockedError, InvalidCredentialsError
from ..models import Identity

if TYPE_CHECKING:
    from ..models import Account
    from ..ports import IAccountRepository, IPasswordHasher

logger = logging.getLogger("riskauth.strategies")


@runtime_checkable
class IAuthenticationStrategy(Protocol):
    """A credential check selected by method name."""

    @property
    def method_name(self) -> str:
        ...

    def supports(self, method: str) -> bool:
        """Case-insensitive match on the method name, gated by availability."""
        ...

    async def authenticate(self, username: str, secret: str) -> Identity:
        """Check credentials.

        Raises:
            InvalidCredentialsError: On any credential mismatch.
        """
        ...


class PasswordStrategy:
    """Username-or-email and password check against local accounts.

    Outdated bcrypt hashes are upgraded on a successful check.
    """

    method: str = "PASSWORD"

    def __init__(
        self,
        *,
        accounts: IAccountRepository,
        password_hasher: IPasswordHasher,
    ) -> None:
        self.accounts = accounts
        self.password_hasher = password_hasher

    @property
    def method_name(self) -> str:
        return self.method

    def supports(self, method: str) -> bool:
        return method.strip().upper() == self.method

    async def authenticate(self, username: str, secret: str) -> Identity:
        account = await self.accounts.get_by_username(username)
        if account is None:
            account = await self.accounts.get_by_email(username)
        if account is None:
            raise InvalidCredentialsError("Invalid username or password")

        if not account.is_active:
            raise InvalidCredentialsError("Account is disabled")
        if account.is_locked:
            raise AccountLockedError(failed_attempts=account.failed_login_attempts)

        if not self.password_hasher.verify(account.password_hash, secret):
            raise InvalidCredentialsError("Invalid username or password")

        if self.password_hasher.needs_rehash(account.password_hash):
            await self.accounts.update_password_hash(
                account.username, self.password_hasher.hash(secret)
            )
            logger.info("Upgraded password hash for %s", account.username)

        return _identity_for(account, self.method)


class JwtPasswordStrategy(PasswordStrategy):
    """Primary strategy: password check whose session is a JWT."""

    method = "JWT"


class BasicPasswordStrategy(PasswordStrategy):
    """Password check for HTTP Basic style clients."""

    method = "BASIC"


def _identity_for(account: Account, method: str) -> Identity:
    return Identity(
        username=account.username,
        auth_method=method,
        authorities=account.role_names() | account.privilege_names(),
    )


__all__: list[str] = [
    "BasicPasswordStrategy",
    "IAuthenticationStrategy",
    "JwtPasswordStrategy",
    "PasswordStrategy",
]
