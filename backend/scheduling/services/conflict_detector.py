# backend/scheduling/services/conflict_detector.py
"""
Conflict Detector for the scheduling engine.

Decides whether a candidate interval collides with a professional's
calendar-holding appointments. Intervals handed to the detector are
expected to come from the Calendar Store, which already filters out
REJECTED, CANCELLED and COMPLETED appointments.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..core.exceptions import SlotConflictException
from ..domain.interval import Interval, find_conflicts
from .base import BaseService

logger = logging.getLogger(__name__)


class ConflictDetector(BaseService):
    """Single home of the overlap rule used by create, reschedule and slot checks."""

    def conflicts(
        self,
        candidate: Interval,
        existing: Iterable[Interval],
        exclude_appointment_id: Optional[str] = None,
    ) -> bool:
        return bool(self.find_conflicts(candidate, existing, exclude_appointment_id))

    def find_conflicts(
        self,
        candidate: Interval,
        existing: Iterable[Interval],
        exclude_appointment_id: Optional[str] = None,
    ) -> List[Interval]:
        """
        Return the intervals that overlap ``candidate``.

        Args:
            candidate: Interval being requested
            existing: Calendar-holding intervals of the same professional
            exclude_appointment_id: Appointment being edited, ignored in the check

        Returns:
            Overlapping intervals sorted by start
        """
        return find_conflicts(candidate, existing, exclude_appointment_id)

    def ensure_free(
        self,
        professional_id: str,
        candidate: Interval,
        existing: Iterable[Interval],
        exclude_appointment_id: Optional[str] = None,
    ) -> None:
        """Raise ``SlotConflictException`` when ``candidate`` overlaps the calendar."""
        hits = self.find_conflicts(candidate, existing, exclude_appointment_id)
        if not hits:
            return

        self.logger.warning(
            f"Found {len(hits)} appointment conflicts for {professional_id} "
            f"between {candidate.start.isoformat()}-{candidate.end.isoformat()}"
        )
        raise SlotConflictException(details=self._build_conflict_details(candidate, hits))

    @staticmethod
    def _build_conflict_details(candidate: Interval, hits: List[Interval]) -> Dict[str, Any]:
        return {
            "requested_start": candidate.start.isoformat(),
            "requested_end": candidate.end.isoformat(),
            "conflicts": [
                {
                    "appointment_id": hit.appointment_id,
                    "start": hit.start.isoformat(),
                    "end": hit.end.isoformat(),
                }
                for hit in hits
            ],
        }
