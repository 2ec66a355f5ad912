"""Two-factor authentication: TOTP, SMS/email one-time codes and backup codes."""

from __future__ import annotations

from .backup_codes import BackupCodeGenerator
from .otp import InMemoryOtpChallengeStore, challenge_key, generate_numeric_code
from .service import TwoFactorService
from .totp import TotpService, TotpSetup

__all__: list[str] = [
    "BackupCodeGenerator",
    "InMemoryOtpChallengeStore",
    "TotpService",
    "TotpSetup",
    "TwoFactorService",
    "challenge_key",
    "generate_numeric_code",
]
