"""
Appointment entity as seen by the scheduling engine.

The engine never persists anything: every operation returns a new
``Appointment`` value and the caller decides how to store it. The end of an
appointment is always derived from its start and duration.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Optional

from ..core.clock import normalize_instant
from ..core.enums import AppointmentStatus
from ..core.ulid_helper import generate_ulid
from .interval import Interval


@dataclass(frozen=True)
class AppointmentRequest:
    """A client's request to book a service with a professional."""

    client_id: str
    professional_id: str
    service_id: str
    scheduled_start: datetime
    location: Optional[str] = None
    client_notes: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "scheduled_start", normalize_instant(self.scheduled_start))


@dataclass(frozen=True)
class Appointment:
    id: str
    client_id: str
    professional_id: str
    service_id: str
    scheduled_start: datetime
    duration_minutes: int
    status: AppointmentStatus = AppointmentStatus.PENDING
    location: Optional[str] = None
    client_notes: Optional[str] = None
    professional_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.duration_minutes <= 0:
            raise ValueError("duration_minutes must be positive")
        object.__setattr__(self, "scheduled_start", normalize_instant(self.scheduled_start))
        object.__setattr__(self, "status", AppointmentStatus(self.status))

    @classmethod
    def new(
        cls, request: AppointmentRequest, duration_minutes: int, now: datetime
    ) -> "Appointment":
        return cls(
            id=generate_ulid(),
            client_id=request.client_id,
            professional_id=request.professional_id,
            service_id=request.service_id,
            scheduled_start=request.scheduled_start,
            duration_minutes=duration_minutes,
            status=AppointmentStatus.PENDING,
            location=request.location,
            client_notes=request.client_notes,
            created_at=now,
            updated_at=now,
        )

    @property
    def scheduled_end(self) -> datetime:
        return self.scheduled_start + timedelta(minutes=self.duration_minutes)

    @property
    def interval(self) -> Interval:
        return Interval(self.scheduled_start, self.scheduled_end, self.id)

    @property
    def holds_calendar(self) -> bool:
        return self.status.holds_calendar

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def with_changes(self, now: datetime, **changes: Any) -> "Appointment":
        """Return a copy with ``changes`` applied and ``updated_at`` bumped."""
        return replace(self, updated_at=now, **changes)

    def __repr__(self) -> str:
        return (
            f"<Appointment {self.id}: client={self.client_id}, "
            f"professional={self.professional_id}, "
            f"start={self.scheduled_start.isoformat()}, "
            f"duration={self.duration_minutes}m, status={self.status.value}>"
        )
