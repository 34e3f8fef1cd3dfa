"""Time helpers shared by models and services."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], float]


def utcnow() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


def system_clock() -> float:
    """Wall-clock seconds since the epoch."""
    return time.time()


__all__ = ["Clock", "system_clock", "utcnow"]
