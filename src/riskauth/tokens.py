"""Bearer token issuance with HS256 JWTs (joserfc)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from joserfc import jwt
from joserfc.errors import ExpiredTokenError, JoseError
from joserfc.jwk import OctKey

from .exceptions import InvalidTokenError, TokenIssuanceError
from .models import utcnow
from .ports import ITokenIssuer

if TYPE_CHECKING:
    from .models import Account

logger = logging.getLogger("riskauth.tokens")


class JwtTokenIssuer(ITokenIssuer):
    """Signs access tokens carrying the account's roles and privileges.

    Claims: ``sub`` (username), ``email``, ``roles``, ``privileges``,
    ``auth_method``, ``iss``, ``iat`` and ``exp``.

    Example:
        ```python
        issuer = JwtTokenIssuer(secret=settings.jwt_secret, ttl_seconds=900)
        token = await issuer.issue(account, "JWT")
        claims = issuer.decode(token)
        ```
    """

    algorithm = "HS256"

    def __init__(
        self,
        *,
        secret: str,
        issuer: str = "riskauth",
        ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._key = OctKey.import_key(secret)
        self.issuer = issuer
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    async def issue(self, account: Account, auth_method: str) -> str:
        now = int(self.clock().timestamp())
        claims: dict[str, Any] = {
            "sub": account.username,
            "email": account.email,
            "roles": sorted(account.role_names()),
            "privileges": sorted(account.privilege_names()),
            "auth_method": auth_method,
            "iss": self.issuer,
            "iat": now,
            "exp": now + self.ttl_seconds,
        }
        try:
            token = jwt.encode({"alg": self.algorithm}, claims, self._key)
        except JoseError as e:
            raise TokenIssuanceError(f"Could not sign token: {e}") from e
        logger.debug("Issued %s token for %s", auth_method, account.username)
        return token

    def decode(self, token: str) -> dict[str, Any]:
        """Verify a token and return its claims.

        Raises:
            InvalidTokenError: Bad signature, malformed token, wrong issuer
                or expired.
        """
        try:
            decoded = jwt.decode(token, self._key, algorithms=[self.algorithm])
            registry = jwt.JWTClaimsRegistry(
                now=int(self.clock().timestamp()),
                exp={"essential": True},
                iss={"essential": True, "value": self.issuer},
            )
            registry.validate(decoded.claims)
        except ExpiredTokenError as e:
            raise InvalidTokenError("Token has expired") from e
        except (JoseError, ValueError) as e:
            raise InvalidTokenError(str(e)) from e
        return dict(decoded.claims)


__all__: list[str] = ["JwtTokenIssuer"]
