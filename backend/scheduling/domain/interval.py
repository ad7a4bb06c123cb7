"""
Half-open interval arithmetic.

``overlaps`` is the only overlap predicate in the code base: two intervals
[s1, e1) and [s2, e2) conflict iff ``s1 < e2 and s2 < e1``. An interval
ending exactly where another begins does not conflict.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class Interval:
    """A [start, end) range on a professional's calendar."""

    start: datetime
    end: datetime
    appointment_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Interval end {self.end} is before start {self.start}")

    @classmethod
    def from_duration(
        cls, start: datetime, duration_minutes: int, appointment_id: Optional[str] = None
    ) -> "Interval":
        return cls(start, start + timedelta(minutes=duration_minutes), appointment_id)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self, other)


def overlaps(first: Interval, second: Interval) -> bool:
    return first.start < second.end and second.start < first.end


def find_conflicts(
    candidate: Interval,
    existing: Iterable[Interval],
    exclude_appointment_id: Optional[str] = None,
) -> List[Interval]:
    """Return every interval in ``existing`` that overlaps ``candidate``, sorted by start."""
    hits = [
        interval
        for interval in existing
        if not (exclude_appointment_id and interval.appointment_id == exclude_appointment_id)
        and overlaps(candidate, interval)
    ]
    return sorted(hits, key=lambda interval: interval.start)


def conflicts(
    candidate: Interval,
    existing: Iterable[Interval],
    exclude_appointment_id: Optional[str] = None,
) -> bool:
    return bool(find_conflicts(candidate, existing, exclude_appointment_id))
