from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional


def now_ms() -> int:
    return int(time.time() * 1000)


def monotonic_stamp(previous: Optional[int], now: Optional[int] = None) -> int:
    """Next ``lastSaved`` value for a record whose last stamp was ``previous``."""
    current = now_ms() if now is None else now
    if previous is None:
        return current
    return max(current, previous + 1)


def ms_to_datetime(value: int) -> datetime:
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)


__all__ = ["monotonic_stamp", "ms_to_datetime", "now_ms"]
