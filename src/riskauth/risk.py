"""Risk engine: scoring, suspicion and lock decisions over the attempt ledger."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from .config import LockPolicy, RiskConfig
from .models import AttemptRecord, utcnow

if TYPE_CHECKING:
    from .models import Account
    from .ports import IAccountRepository, IAttemptLedger

logger = logging.getLogger("riskauth.risk")

MAX_RISK_SCORE = 100


class RiskEngine:
    """Computes risk from recent attempts and maintains account lock state.

    Score signals, each evaluated over the fraud window unless noted:

    - +30 when the username has more than 3 failures
    - +20 more when it has more than 5 failures
    - +30 when the source address has more than 10 failures
    - +20 when the username made more than 5 attempts of any outcome in
      the rapid window

    The sum is clamped to [0, 100].

    Example:
        ```python
        engine = RiskEngine(accounts=accounts, ledger=ledger)
        if await engine.is_suspicious_activity("alice", "10.0.0.1"):
            ...
        await engine.record_attempt("alice", "10.0.0.1", "curl", False, "Bad password")
        ```
    """

    def __init__(
        self,
        *,
        accounts: IAccountRepository,
        ledger: IAttemptLedger,
        config: RiskConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the risk engine.

        Args:
            accounts: Account repository holding counters and lock flags.
            ledger: Attempt ledger.
            config: Thresholds and lock policy.
            clock: UTC time source.
        """
        self.accounts = accounts
        self.ledger = ledger
        self.config = config or RiskConfig()
        self.clock = clock

    async def calculate_risk_score(self, username: str, ip_address: str) -> int:
        now = self.clock()
        since = now - timedelta(minutes=self.config.fraud_window_minutes)
        rapid_since = now - timedelta(minutes=self.config.rapid_window_minutes)

        failed_by_user = await self.ledger.count_failed_by_username(username, since)
        failed_by_ip = await self.ledger.count_failed_by_ip(ip_address, since)
        recent_by_user = await self.ledger.count_by_username(username, rapid_since)

        score = 0
        if failed_by_user > 3:
            score += 30
        if failed_by_user > 5:
            score += 20
        if failed_by_ip > 10:
            score += 30
        if recent_by_user > 5:
            score += 20
        return max(0, min(score, MAX_RISK_SCORE))

    async def is_suspicious_activity(self, username: str, ip_address: str) -> bool:
        """True when the username or the source address failed too often."""
        since = self.clock() - timedelta(minutes=self.config.fraud_window_minutes)
        failed_by_user = await self.ledger.count_failed_by_username(username, since)
        if failed_by_user > self.config.max_failed_attempts:
            logger.warning(
                "Suspicious activity for user %s: %d failures in window",
                username,
                failed_by_user,
            )
            return True
        failed_by_ip = await self.ledger.count_failed_by_ip(ip_address, since)
        if failed_by_ip > self.config.max_failed_attempts_per_ip:
            logger.warning(
                "Suspicious activity from %s: %d failures in window",
                ip_address,
                failed_by_ip,
            )
            return True
        return False

    async def is_account_locked(self, username: str) -> bool:
        """Whether the account is locked.

        Under the timed policy an expired lock is cleared here and the
        account reported unlocked. Unknown usernames are never locked.
        """
        account = await self._find_account(username)
        if account is None or not account.is_locked:
            return False
        if self._lock_expired(account):
            await self.accounts.clear_lock(account.username)
            logger.info("Lock expired for account %s", account.username)
            return False
        return True

    async def record_attempt(
        self,
        username: str,
        ip_address: str,
        user_agent: str,
        success: bool,
        failure_reason: str | None = None,
    ) -> AttemptRecord:
        """Score and append an attempt; failures advance the lock counter.

        Returns:
            The record written to the ledger.
        """
        score = await self.calculate_risk_score(username, ip_address)
        now = self.clock()
        record = AttemptRecord(
            username=username,
            ip_address=ip_address,
            user_agent=user_agent,
            success=success,
            failure_reason=None if success else failure_reason,
            attempted_at=now,
            suspicious=score > self.config.suspicious_score_threshold,
            risk_score=score,
        )
        await self.ledger.append(record)

        if not success:
            account = await self._find_account(username)
            if account is not None:
                updated = await self.accounts.increment_failed_attempts(
                    account.username, self.config.max_failed_attempts, now
                )
                if updated is not None and updated.is_locked and not account.is_locked:
                    logger.warning(
                        "Account %s locked after %d failed attempts",
                        updated.username,
                        updated.failed_login_attempts,
                    )
        return record

    async def handle_successful_login(self, username: str) -> None:
        """Reset the failure counter and stamp the last login time."""
        await self.accounts.record_successful_login(username, self.clock())

    async def unlock_account(self, username: str) -> None:
        """Administrative unlock: clears the lock flag and failure counter."""
        await self.accounts.clear_lock(username)
        logger.info("Account %s unlocked", username)

    def lockout_seconds(self) -> int | None:
        """Lock lifetime in seconds, None under the sticky policy."""
        if self.config.lock_policy is LockPolicy.TIMED:
            return self.config.lockout_duration_minutes * 60
        return None

    def _lock_expired(self, account: Account) -> bool:
        if self.config.lock_policy is not LockPolicy.TIMED or account.locked_at is None:
            return False
        duration = timedelta(minutes=self.config.lockout_duration_minutes)
        return self.clock() - account.locked_at >= duration

    async def _find_account(self, login: str) -> Account | None:
        account = await self.accounts.get_by_username(login)
        if account is None:
            account = await self.accounts.get_by_email(login)
        return account


__all__: list[str] = ["MAX_RISK_SCORE", "RiskEngine"]
