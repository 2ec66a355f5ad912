"""One-time codes for SMS and email second factors.

A code is bound to an identifier (account and method), expires after a TTL,
tolerates a few wrong guesses and is consumed on first successful use.
"""

from __future__ import annotations

import asyncio
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..models import utcnow
from ..ports import IOtpChallengeStore


def generate_numeric_code(length: int = 6) -> str:
    """Uniformly random zero-padded decimal code."""
    code = secrets.randbelow(10**length)
    return str(code).zfill(length)


def challenge_key(username: str, method: str) -> str:
    return f"2fa:{method.lower()}:{username}"


@dataclass
class _Challenge:
    code: str
    expires_at: datetime
    attempts: int = 0


class InMemoryOtpChallengeStore(IOtpChallengeStore):
    """In-memory OTP challenge store for TESTING ONLY.

    ⚠️ WARNING: Codes are stored in plain text in memory.
    Do NOT use in production!
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._challenges: dict[str, _Challenge] = {}
        self._lock = asyncio.Lock()
        self.clock = clock

    async def create(self, identifier: str, code: str, ttl: int = 300) -> None:
        async with self._lock:
            self._challenges[identifier] = _Challenge(
                code=code,
                expires_at=self.clock() + timedelta(seconds=ttl),
            )

    async def verify(self, identifier: str, code: str, max_attempts: int = 3) -> bool:
        async with self._lock:
            challenge = self._challenges.get(identifier)
            if challenge is None:
                return False

            if self.clock() >= challenge.expires_at:
                del self._challenges[identifier]
                return False

            if secrets.compare_digest(challenge.code.encode(), code.strip().encode()):
                del self._challenges[identifier]
                return True

            challenge.attempts += 1
            if challenge.attempts >= max_attempts:
                del self._challenges[identifier]
            return False

    async def delete(self, identifier: str) -> None:
        async with self._lock:
            self._challenges.pop(identifier, None)


__all__: list[str] = [
    "InMemoryOtpChallengeStore",
    "challenge_key",
    "generate_numeric_code",
]
