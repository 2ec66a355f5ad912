"""Attempt ledger: the append-only history behind risk scoring."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .ports import IAttemptLedger

if TYPE_CHECKING:
    from datetime import datetime

    from .models import AttemptRecord

logger = logging.getLogger("riskauth.ledger")


class InMemoryAttemptLedger(IAttemptLedger):
    """In-memory attempt ledger for TESTING and single-process use.

    Records are kept in insertion order and never modified or removed.
    Queries scan the full history, so this is not meant for large volumes.
    """

    def __init__(self) -> None:
        self._records: list[AttemptRecord] = []
        self._lock = asyncio.Lock()

    async def append(self, record: AttemptRecord) -> None:
        async with self._lock:
            self._records.append(record)
        logger.debug(
            "Attempt recorded for %s from %s (success=%s, score=%d)",
            record.username,
            record.ip_address,
            record.success,
            record.risk_score,
        )

    async def count_failed_by_username(self, username: str, since: datetime) -> int:
        return sum(
            1
            for r in self._records
            if r.username == username and not r.success and r.attempted_at > since
        )

    async def count_failed_by_ip(self, ip_address: str, since: datetime) -> int:
        return sum(
            1
            for r in self._records
            if r.ip_address == ip_address and not r.success and r.attempted_at > since
        )

    async def count_by_username(self, username: str, since: datetime) -> int:
        return sum(
            1 for r in self._records if r.username == username and r.attempted_at > since
        )

    async def list_by_username(self, username: str) -> list[AttemptRecord]:
        return [r for r in self._records if r.username == username]

    def __len__(self) -> int:
        return len(self._records)


__all__: list[str] = ["InMemoryAttemptLedger"]
