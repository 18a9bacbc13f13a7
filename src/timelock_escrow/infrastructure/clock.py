"""Clock implementations.

SystemClock reads wall time; ManualClock only moves when told to, which is
how tests and the simulation step past an unlock timestamp.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from timelock_escrow.config import Settings


class SystemClock:
    """Wall-clock seconds, never going backwards even if the host clock does."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time()))
            return self._last


class ManualClock:
    """Simulated clock advanced explicitly."""

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError("Clock cannot start before the epoch")
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Move forward by ``seconds`` and return the new time."""
        if seconds < 0:
            raise ValueError(f"Cannot advance the clock by a negative amount: {seconds}")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError(f"Cannot move the clock back from {self._now} to {timestamp}")
        self._now = timestamp


def build_clock(settings: Settings) -> SystemClock | ManualClock:
    """Return the clock selected by ``settings.clock_mode``."""
    if settings.clock_mode == "manual":
        return ManualClock(start=settings.manual_clock_start)
    return SystemClock()
