"""TOTP (Time-based One-Time Password) helpers.

Compatible with any RFC 6238 authenticator app (Google Authenticator,
Microsoft Authenticator, Authy, FreeOTP). Uses pyotp internally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TotpSetup:
    """Material produced for a new TOTP enrolment.

    Attributes:
        secret: Base32-encoded secret.
        provisioning_uri: otpauth:// URI for QR code generation.
        manual_key: Secret grouped in fours for manual entry.
    """

    secret: str
    provisioning_uri: str
    manual_key: str


class TotpService:
    """Generates TOTP secrets and verifies codes against them.

    Stateless: the secret lives in the account's two-factor configuration.

    Example:
        ```python
        totp = TotpService(issuer="AuthApp")
        setup = totp.setup("alice")
        print(setup.provisioning_uri)
        assert totp.verify(setup.secret, pyotp.TOTP(setup.secret).now())
        ```
    """

    def __init__(
        self,
        *,
        issuer: str = "AuthApp",
        digits: int = 6,
        interval: int = 30,
        valid_window: int = 1,
    ) -> None:
        """Initialize TOTP service.

        Args:
            issuer: Application name shown in authenticator app.
            digits: Number of digits in code (default 6).
            interval: Time step in seconds (default 30).
            valid_window: Accept codes ±N steps for clock drift (default 1).
        """
        self.issuer = issuer
        self.digits = digits
        self.interval = interval
        self.valid_window = valid_window

    def _get_pyotp(self) -> Any:
        """Lazy import pyotp."""
        try:
            import pyotp

            return pyotp
        except ImportError as e:
            raise ImportError(
                "pyotp is required for TOTP support. "
                "Install with: pip install riskauth[totp]"
            ) from e

    def setup(self, account_name: str) -> TotpSetup:
        """Generate a fresh secret and its provisioning URI."""
        pyotp = self._get_pyotp()
        secret = pyotp.random_base32()
        totp = pyotp.TOTP(
            secret,
            digits=self.digits,
            interval=self.interval,
            issuer=self.issuer,
        )
        return TotpSetup(
            secret=secret,
            provisioning_uri=totp.provisioning_uri(
                name=account_name,
                issuer_name=self.issuer,
            ),
            manual_key=self._format_secret(secret),
        )

    def verify(self, secret: str, code: str) -> bool:
        """Check a code against the secret within the drift window."""
        code = code.strip()
        if not secret or not code.isdigit() or len(code) != self.digits:
            return False
        pyotp = self._get_pyotp()
        totp = pyotp.TOTP(secret, digits=self.digits, interval=self.interval)
        return bool(totp.verify(code, valid_window=self.valid_window))

    @staticmethod
    def _format_secret(secret: str) -> str:
        secret = secret.rstrip("=")
        return " ".join(secret[i : i + 4] for i in range(0, len(secret), 4))


__all__: list[str] = ["TotpService", "TotpSetup"]
