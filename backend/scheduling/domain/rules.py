"""Business-rule parameters injected into the engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import TYPE_CHECKING, FrozenSet

from ..core.clock import format_hhmm
from ..core.constants import (
    DEFAULT_BOOKING_HORIZON_MONTHS,
    DEFAULT_BUSINESS_CLOSE,
    DEFAULT_BUSINESS_OPEN,
    DEFAULT_CANCEL_LEAD_TIME_HOURS,
    DEFAULT_EDIT_LEAD_TIME_HOURS,
    DEFAULT_SLOT_STEP_MINUTES,
    DEFAULT_WEEKEND_DAYS,
)

if TYPE_CHECKING:
    from ..core.config import Settings


@dataclass(frozen=True)
class BusinessHours:
    """Daily [open, close) window."""

    open: time = DEFAULT_BUSINESS_OPEN
    close: time = DEFAULT_BUSINESS_CLOSE

    def __post_init__(self) -> None:
        if self.close <= self.open:
            raise ValueError("Business hours must close after they open")

    def opening_on(self, target_date: date) -> datetime:
        return datetime.combine(target_date, self.open)

    def closing_on(self, target_date: date) -> datetime:
        return datetime.combine(target_date, self.close)

    def describe(self) -> tuple[str, str]:
        return format_hhmm(self.open), format_hhmm(self.close)


@dataclass(frozen=True)
class BusinessRules:
    hours: BusinessHours = field(default_factory=BusinessHours)
    weekend_days: FrozenSet[int] = DEFAULT_WEEKEND_DAYS
    slot_step_minutes: int = DEFAULT_SLOT_STEP_MINUTES
    horizon_months: int = DEFAULT_BOOKING_HORIZON_MONTHS
    edit_lead_time_hours: int = DEFAULT_EDIT_LEAD_TIME_HOURS
    cancel_lead_time_hours: int = DEFAULT_CANCEL_LEAD_TIME_HOURS

    def __post_init__(self) -> None:
        if self.slot_step_minutes <= 0:
            raise ValueError("slot_step_minutes must be positive")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "BusinessRules":
        return cls(
            hours=BusinessHours(open=settings.business_open, close=settings.business_close),
            weekend_days=frozenset(settings.weekend_days),
            slot_step_minutes=settings.slot_step_minutes,
            horizon_months=settings.booking_horizon_months,
            edit_lead_time_hours=settings.edit_lead_time_hours,
            cancel_lead_time_hours=settings.cancel_lead_time_hours,
        )
