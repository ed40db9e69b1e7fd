"""Time helpers."""

from __future__ import annotations

import time

DAY_MS = 24 * 60 * 60 * 1000


def now_ms() -> int:
    """Return current timestamp in milliseconds."""
    return int(time.time() * 1000)


def days_ago_ms(days: float, now: int | None = None) -> int:
    """Return the epoch-millisecond cutoff ``days`` before ``now``."""
    reference = now_ms() if now is None else now
    return reference - int(days * DAY_MS)
