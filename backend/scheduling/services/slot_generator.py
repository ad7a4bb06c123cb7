# backend/scheduling/services/slot_generator.py
"""
Slot Generator for the scheduling engine.

Enumerates fixed-step candidate start times across a day's business hours
and labels each one. The generator is pure: the caller fetches the day's
calendar intervals once and passes them in.
"""

from datetime import date, datetime, timedelta
import logging
from typing import Iterable, List, Optional, Sequence

from ..core.constants import (
    SLOT_REASON_OCCUPIED,
    SLOT_REASON_OUTSIDE_BUSINESS_HOURS,
    SLOT_REASON_PAST,
)
from ..domain.interval import Interval
from ..domain.rules import BusinessHours
from ..domain.slots import SlotResult
from .base import BaseService
from .conflict_detector import ConflictDetector

logger = logging.getLogger(__name__)


class SlotGenerator(BaseService):
    """Builds the availability grid of one professional for one day."""

    def __init__(
        self,
        conflict_detector: Optional[ConflictDetector] = None,
        step_minutes: int = 30,
    ) -> None:
        super().__init__()
        if step_minutes <= 0:
            raise ValueError("step_minutes must be positive")
        self.conflict_detector = conflict_detector or ConflictDetector()
        self.step = timedelta(minutes=step_minutes)

    def candidate_starts(self, target_date: date, hours: BusinessHours) -> List[datetime]:
        """Start times in [open, close) spaced by the configured step."""
        current = hours.opening_on(target_date)
        closing = hours.closing_on(target_date)
        starts = []
        while current < closing:
            starts.append(current)
            current += self.step
        return starts

    def evaluate_slot(
        self,
        start: datetime,
        duration_minutes: int,
        hours: BusinessHours,
        intervals: Sequence[Interval],
        now: Optional[datetime] = None,
    ) -> SlotResult:
        """
        Label a single candidate.

        Reasons are checked in order: outside business hours, in the past,
        occupied. A candidate starting at or after close is outside business
        hours whatever its duration.
        """
        candidate = Interval.from_duration(start, duration_minutes)
        opening = hours.opening_on(start.date())
        closing = hours.closing_on(start.date())

        reason = None
        if start < opening or start >= closing or candidate.end > closing:
            reason = SLOT_REASON_OUTSIDE_BUSINESS_HOURS
        elif now is not None and start <= now:
            reason = SLOT_REASON_PAST
        elif self.conflict_detector.conflicts(candidate, intervals):
            reason = SLOT_REASON_OCCUPIED

        return SlotResult(
            start=candidate.start,
            end=candidate.end,
            available=reason is None,
            reason=reason,
        )

    def generate_slots(
        self,
        target_date: date,
        duration_minutes: int,
        hours: BusinessHours,
        intervals: Iterable[Interval],
        now: Optional[datetime] = None,
    ) -> List[SlotResult]:
        """
        Enumerate every candidate start of ``target_date``.

        Args:
            target_date: Day to enumerate
            duration_minutes: Length of the requested service
            hours: Business hours window
            intervals: Calendar-holding intervals of the professional for that day
            now: When given, candidates starting at or before it are marked past

        Returns:
            One ``SlotResult`` per candidate, in chronological order
        """
        if duration_minutes <= 0:
            raise ValueError("duration_minutes must be positive")

        day_intervals = list(intervals)
        return [
            self.evaluate_slot(start, duration_minutes, hours, day_intervals, now)
            for start in self.candidate_starts(target_date, hours)
        ]
