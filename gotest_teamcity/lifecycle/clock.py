"""Wall-clock sources for test timestamps.

The engine stamps each test when it starts and when it is finalized.  It
never reads the time itself: a clock object is passed in so tests can
substitute a deterministic one.
"""

from __future__ import annotations

import datetime
from typing import Protocol


class Clock(Protocol):
    """Anything with a ``now()`` returning a datetime."""

    def now(self) -> datetime.datetime: ...


class SystemClock:
    """Local wall-clock time."""

    def now(self) -> datetime.datetime:
        return datetime.datetime.now()


class FixedClock:
    """Clock that returns a fixed instant, optionally advancing per call.

    Args:
        start: The first instant returned.
        step: Amount added after every call (zero keeps the clock frozen).
    """

    def __init__(
        self,
        start: datetime.datetime | None = None,
        step: datetime.timedelta = datetime.timedelta(0),
    ) -> None:
        self.current = start or datetime.datetime(2017, 1, 2, 4, 5, 6, 789000)
        self.step = step

    def now(self) -> datetime.datetime:
        value = self.current
        self.current = value + self.step
        return value
