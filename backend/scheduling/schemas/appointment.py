"""
Appointment request and response schemas.

Instants are naive local datetimes; aware values are converted to local
time on the way in. The end of an appointment is always computed.
"""

from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import ConfigDict, Field, field_validator

from ..core.clock import normalize_instant
from ..core.enums import AppointmentStatus
from ..domain.appointment import Appointment
from ..domain.slots import SlotResult
from ..services.status_machine import allowed_targets
from .base import StandardizedModel, StrictRequestModel


def _normalize(value: Any) -> Any:
    if isinstance(value, datetime):
        return normalize_instant(value)
    return value


class AppointmentCreate(StrictRequestModel):
    """
    Book a service with a professional.

    The client is the caller identified by the ``X-Actor-Id`` header.
    """

    professional_id: str = Field(..., description="Professional to book")
    service_id: str = Field(..., description="Service being booked")
    scheduled_start: datetime = Field(..., description="Start of the appointment")
    location: Optional[str] = Field(None, max_length=500, description="Where it takes place")
    client_notes: Optional[str] = Field(None, max_length=1000, description="Note from the client")

    @field_validator("scheduled_start", mode="after")
    @classmethod
    def _to_local(cls, v: datetime) -> datetime:
        return _normalize(v)


class AppointmentReschedule(StrictRequestModel):
    scheduled_start: datetime = Field(..., description="New start of the appointment")

    @field_validator("scheduled_start", mode="after")
    @classmethod
    def _to_local(cls, v: datetime) -> datetime:
        return _normalize(v)


class AppointmentStatusUpdate(StrictRequestModel):
    status: AppointmentStatus = Field(..., description="Target status")
    note: Optional[str] = Field(
        None,
        max_length=1000,
        description="Cancellation reason when cancelling, professional note otherwise",
    )


class AppointmentResponse(StandardizedModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: str
    client_id: str
    professional_id: str
    service_id: str
    scheduled_start: datetime
    scheduled_end: datetime
    duration_minutes: int
    status: AppointmentStatus
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
    allowed_transitions: List[str] = Field(
        default_factory=list, description="Statuses the appointment can move to next"
    )

    @classmethod
    def from_appointment(cls, appointment: Appointment) -> "AppointmentResponse":
        targets = sorted(target.value for target in allowed_targets(appointment.status))
        return cls.model_validate(appointment).model_copy(update={"allowed_transitions": targets})


class AppointmentListResponse(StandardizedModel):
    items: List[AppointmentResponse]
    total: int

    @classmethod
    def from_appointments(cls, appointments: List[Appointment]) -> "AppointmentListResponse":
        items = [AppointmentResponse.from_appointment(a) for a in appointments]
        return cls(items=items, total=len(items))


class SlotResponse(StandardizedModel):
    time: str = Field(..., description="Start time as HH:MM")
    start: datetime
    end: datetime
    available: bool
    reason: Optional[str] = None

    @classmethod
    def from_slot(cls, slot: SlotResult) -> "SlotResponse":
        return cls(
            time=slot.time_label,
            start=slot.start,
            end=slot.end,
            available=slot.available,
            reason=slot.reason,
        )


class AvailabilityResponse(StandardizedModel):
    professional_id: str
    service_id: str
    target_date: date = Field(..., alias="date")
    slots: List[SlotResponse]
    available_count: int


class AppointmentStatsResponse(StandardizedModel):
    total: int
    pending: int
    accepted: int
    rejected: int
    cancelled: int
    completed: int
    completion_rate: float = Field(..., description="Percentage of appointments completed")
