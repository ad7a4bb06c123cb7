"""
Clock and instant helpers.

The engine reasons in a single implicit timezone: every instant is a naive
``datetime`` holding local wall-clock time. Aware datetimes coming from the
outside are converted to local time and stripped of their tzinfo on entry.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Protocol


class Clock(Protocol):
    """Supplies the current instant."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock of the running process."""

    def now(self) -> datetime:
        return datetime.now().replace(microsecond=0)


class FixedClock:
    """Clock frozen at a given instant; ``advance`` moves it forward."""

    def __init__(self, instant: datetime) -> None:
        self._instant = normalize_instant(instant)

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = normalize_instant(instant)

    def advance(self, **kwargs: float) -> datetime:
        self._instant = self._instant + timedelta(**kwargs)
        return self._instant


def normalize_instant(value: datetime) -> datetime:
    """Return ``value`` as a naive local instant."""
    if value.tzinfo is not None and value.tzinfo.utcoffset(value) is not None:
        return value.astimezone().replace(tzinfo=None)
    return value.replace(tzinfo=None)


def add_months(value: datetime, months: int) -> datetime:
    """
    Add calendar months, clamping the day to the end of the target month.

    2024-11-30 + 3 months -> 2025-02-28.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def day_bounds(target_date: date) -> tuple[datetime, datetime]:
    """Return the [start, end) instants covering ``target_date``."""
    start = datetime.combine(target_date, time(0, 0))
    return start, start + timedelta(days=1)


def hours_between(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() / 3600


def format_hhmm(value: time) -> str:
    """Presentation helper: ``time`` -> ``"HH:MM"``."""
    return value.strftime("%H:%M")
