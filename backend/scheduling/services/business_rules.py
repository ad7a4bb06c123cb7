# backend/scheduling/services/business_rules.py
"""
Business Rule Validator for the scheduling engine.

A validator is an ordered list of checks over a ``ScheduleCheck``. Each
check raises its own exception kind and none of them mutates state. The
chains run temporal sanity first (past, horizon, business hours, weekday),
then lead-time policy, and the calendar conflict check last because it is
the only one that queries the Calendar Store.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from typing import Callable, Optional, Sequence, Tuple

from ..core.clock import add_months, hours_between
from ..core.exceptions import (
    HorizonExceededException,
    InsufficientCancelLeadTimeException,
    InsufficientEditLeadTimeException,
    InvalidPastScheduleException,
    OutsideBusinessHoursException,
    WeekendNotAllowedException,
)
from ..domain.interval import Interval
from ..domain.rules import BusinessRules
from ..repositories.calendar_store import CalendarStore
from .base import BaseService
from .conflict_detector import ConflictDetector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleCheck:
    """
    Input to the rule chain.

    ``scheduled_start`` is the start being requested. ``current_start`` is
    the start the appointment holds today, used by the edit and cancel
    lead-time checks.
    """

    professional_id: str
    scheduled_start: datetime
    duration_minutes: int
    now: datetime
    current_start: Optional[datetime] = None
    exclude_appointment_id: Optional[str] = None

    @property
    def scheduled_end(self) -> datetime:
        return self.scheduled_start + timedelta(minutes=self.duration_minutes)

    @property
    def interval(self) -> Interval:
        return Interval(self.scheduled_start, self.scheduled_end)

    @property
    def lead_time_start(self) -> datetime:
        return self.current_start or self.scheduled_start


Check = Callable[[ScheduleCheck], None]


class BusinessRuleValidator(BaseService):
    def __init__(
        self,
        calendar_store: CalendarStore,
        rules: Optional[BusinessRules] = None,
        conflict_detector: Optional[ConflictDetector] = None,
    ) -> None:
        super().__init__()
        self.calendar_store = calendar_store
        self.rules = rules or BusinessRules()
        self.conflict_detector = conflict_detector or ConflictDetector()

    # Chains

    @property
    def creation_checks(self) -> Tuple[Check, ...]:
        return (
            self.check_past,
            self.check_horizon,
            self.check_business_hours,
            self.check_weekday,
            self.check_conflict,
        )

    @property
    def reschedule_checks(self) -> Tuple[Check, ...]:
        return (
            self.check_past,
            self.check_horizon,
            self.check_business_hours,
            self.check_weekday,
            self.check_edit_lead_time,
            self.check_conflict,
        )

    @property
    def cancellation_checks(self) -> Tuple[Check, ...]:
        return (self.check_cancel_lead_time,)

    def run(self, checks: Sequence[Check], request: ScheduleCheck) -> None:
        """Run ``checks`` in order, stopping at the first violation."""
        for check in checks:
            check(request)

    def validate_creation(self, request: ScheduleCheck) -> None:
        self.run(self.creation_checks, request)

    def validate_reschedule(self, request: ScheduleCheck) -> None:
        self.run(self.reschedule_checks, request)

    def validate_cancellation(self, request: ScheduleCheck) -> None:
        self.run(self.cancellation_checks, request)

    # Checks

    def check_past(self, request: ScheduleCheck) -> None:
        if request.scheduled_start <= request.now:
            raise InvalidPastScheduleException(request.scheduled_start, request.now)

    def check_horizon(self, request: ScheduleCheck) -> None:
        latest_start = add_months(request.now, self.rules.horizon_months)
        if request.scheduled_start > latest_start:
            raise HorizonExceededException(
                request.scheduled_start, latest_start, self.rules.horizon_months
            )

    def check_business_hours(self, request: ScheduleCheck) -> None:
        """
        Start must fall in [open, close) and the appointment must end by close
        on the same day.
        """
        hours = self.rules.hours
        start = request.scheduled_start
        closing = hours.closing_on(start.date())
        if (
            start < hours.opening_on(start.date())
            or start >= closing
            or request.scheduled_end > closing
        ):
            open_label, close_label = hours.describe()
            raise OutsideBusinessHoursException(
                start, request.scheduled_end, open_label, close_label
            )

    def check_weekday(self, request: ScheduleCheck) -> None:
        if request.scheduled_start.weekday() in self.rules.weekend_days:
            raise WeekendNotAllowedException(request.scheduled_start)

    def check_edit_lead_time(self, request: ScheduleCheck) -> None:
        provided = hours_between(request.now, request.lead_time_start)
        if provided < self.rules.edit_lead_time_hours:
            raise InsufficientEditLeadTimeException(
                self.rules.edit_lead_time_hours, round(max(provided, 0.0), 2)
            )

    def check_cancel_lead_time(self, request: ScheduleCheck) -> None:
        provided = hours_between(request.now, request.lead_time_start)
        if provided < self.rules.cancel_lead_time_hours:
            raise InsufficientCancelLeadTimeException(
                self.rules.cancel_lead_time_hours, round(max(provided, 0.0), 2)
            )

    def check_conflict(self, request: ScheduleCheck) -> None:
        candidate = request.interval
        existing = self.calendar_store.fetch_calendar_intervals(
            request.professional_id, candidate.start, candidate.end
        )
        self.conflict_detector.ensure_free(
            request.professional_id,
            candidate,
            existing,
            exclude_appointment_id=request.exclude_appointment_id,
        )
