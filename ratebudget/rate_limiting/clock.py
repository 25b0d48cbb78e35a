"""
Time sources for token bucket refill.

Buckets count time in whole epoch seconds. The store takes a clock at
construction so tests can pin or advance time without touching any
global state.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol


class Clock(Protocol):
    """Source of the current time in whole seconds since the epoch."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall clock backed by ``time.time()``."""

    def now(self) -> int:
        return int(time.time())

    def __repr__(self) -> str:
        return "SystemClock()"


class FixedClock:
    """
    Clock frozen at a settable instant.

    Safe to move from one thread while others read it.
    """

    def __init__(self, now: int = 0):
        self._now = now
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            return self._now

    def set(self, now: int) -> None:
        """Jump to an absolute instant (may move backwards)."""
        with self._lock:
            self._now = now

    def advance(self, seconds: int) -> int:
        """Move forward by ``seconds`` and return the new instant."""
        with self._lock:
            self._now += seconds
            return self._now

    def __repr__(self) -> str:
        return f"FixedClock(now={self._now})"
