"""Directory (LDAP) authentication strategy."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..exceptions import DirectoryUnavailableError, InvalidCredentialsError
from ..models import Identity

if TYPE_CHECKING:
    from ..ports import IDirectoryBindProvider

logger = logging.getLogger("riskauth.strategies")


class DirectoryStrategy:
    """Authenticates by binding to a directory.

    The strategy only advertises support while enabled and wired to a bind
    provider, so a disabled directory is indistinguishable from an unknown
    method at resolution time.
    """

    method_name = "LDAP"

    def __init__(
        self,
        *,
        bind_provider: IDirectoryBindProvider | None = None,
        enabled: bool = False,
    ) -> None:
        self.bind_provider = bind_provider
        self.enabled = enabled

    @property
    def available(self) -> bool:
        return self.enabled and self.bind_provider is not None

    def supports(self, method: str) -> bool:
        return self.available and method.strip().upper() == self.method_name

    async def authenticate(self, username: str, secret: str) -> Identity:
        if self.bind_provider is None or not self.enabled:
            raise DirectoryUnavailableError("LDAP authentication is disabled")
        if not secret:
            raise InvalidCredentialsError("Invalid username or password")
        try:
            bound = await self.bind_provider.bind(username, secret)
        except Exception as err:
            logger.warning("Directory bind failed for %s: %s", username, err)
            raise DirectoryUnavailableError("Directory service unavailable") from err
        if not bound:
            logger.info("Directory bind rejected for %s", username)
            raise InvalidCredentialsError("Invalid username or password")
        return Identity(username=username, auth_method=self.method_name)


__all__: list[str] = ["DirectoryStrategy"]
