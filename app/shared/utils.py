"""Shared utility functions."""

from __future__ import annotations

import math
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize datetime to UTC timezone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def minutes_until(moment: datetime, now: datetime) -> int:
    """Whole minutes left until ``moment``, rounded up, never below one."""
    seconds = (ensure_utc(moment) - ensure_utc(now)).total_seconds()
    return max(1, math.ceil(seconds / 60))
