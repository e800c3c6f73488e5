from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Monotonic clock abstraction.

    Engines, pools and timers read time only through this interface so a test
    can drive them with a hand-advanced fake.
    """

    def now(self) -> float:
        """Return monotonic seconds."""


class RealClock:
    """Production clock backed by time.monotonic()."""

    def now(self) -> float:
        return time.monotonic()


def elapsed_ms(clock: Clock, since_s: float) -> int:
    """Whole milliseconds since ``since_s``; never negative."""

    return max(0, int(round((clock.now() - float(since_s)) * 1000.0)))
