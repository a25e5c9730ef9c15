"""Injectable time sources."""

from __future__ import annotations

from dataclasses import dataclass
import datetime as dt
from typing import Protocol


class Clock(Protocol):
    def now(self) -> dt.datetime: ...


class SystemClock:
    def now(self) -> dt.datetime:
        return dt.datetime.now(dt.timezone.utc)


@dataclass(frozen=True, slots=True)
class FixedClock:
    """Always returns ``value``; for tests and reproducible reports."""

    value: dt.datetime

    def now(self) -> dt.datetime:
        return self.value
