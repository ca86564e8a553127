"""Progressive account lockout after repeated password failures."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol
from uuid import UUID

from app.modules.admin_auth.repository import FailedLoginUpdate
from app.shared.utils import ensure_utc, minutes_until

logger = logging.getLogger(__name__)


class LockoutStore(Protocol):
    async def register_failed_login(
        self,
        admin_id: UUID,
        *,
        max_attempts: int,
        lock_until: datetime,
        now: datetime,
    ) -> FailedLoginUpdate | None: ...

    async def clear_lockout(self, admin_id: UUID) -> bool: ...


class LockableAccount(Protocol):
    id: UUID
    locked_until: datetime | None


@dataclass(frozen=True, slots=True)
class FailureOutcome:
    """Result of recording one failed password check."""

    locked: bool
    engaged: bool = False
    remaining_minutes: int | None = None


class LockoutPolicy:
    """Counts password failures and locks the account once the limit is hit.

    The counter resets to zero when the lock engages, so the first failure
    after expiry starts a fresh cycle of ``max_attempts``.
    """

    def __init__(self, store: LockoutStore, *, max_attempts: int, lockout_duration: timedelta) -> None:
        self.store = store
        self.max_attempts = max_attempts
        self.lockout_duration = lockout_duration

    def is_locked(self, account: LockableAccount, now: datetime) -> bool:
        return account.locked_until is not None and ensure_utc(account.locked_until) > now

    def remaining_minutes(self, account: LockableAccount, now: datetime) -> int:
        if account.locked_until is None:
            return 0
        return minutes_until(account.locked_until, now)

    async def register_failure(self, admin_id: UUID, now: datetime) -> FailureOutcome:
        lock_until = now + self.lockout_duration
        update = await self.store.register_failed_login(
            admin_id,
            max_attempts=self.max_attempts,
            lock_until=lock_until,
            now=now,
        )
        if update is None:
            # Another request engaged the lock between our read and this write.
            return FailureOutcome(locked=True, remaining_minutes=minutes_until(lock_until, now))

        if update.locked_until is not None:
            logger.warning("Admin account %s locked after %s failed logins", admin_id, self.max_attempts)
            return FailureOutcome(
                locked=True,
                engaged=True,
                remaining_minutes=minutes_until(update.locked_until, now),
            )
        return FailureOutcome(locked=False)

    async def unlock(self, admin_id: UUID) -> bool:
        return await self.store.clear_lockout(admin_id)
