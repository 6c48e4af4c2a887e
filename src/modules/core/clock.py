"""Injectable clock.

Time-bucket classification depends on "now".  Services receive a
``Clock`` instead of reading wall-clock time inline so tests can pin it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from django.utils import timezone


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Local time in the configured ``TIME_ZONE``."""

    def now(self) -> datetime:
        return timezone.localtime()


class FixedClock:
    """Clock frozen at a given instant (tests, replays)."""

    def __init__(self, instant: datetime) -> None:
        self._instant = instant

    def now(self) -> datetime:
        return self._instant


system_clock = SystemClock()
