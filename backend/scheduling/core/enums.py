"""
Core enums for the scheduling engine.

These enumerations are shared by the engine, the ORM models and the
HTTP schemas so every layer speaks the same vocabulary.
"""

from enum import Enum


class AppointmentStatus(str, Enum):
    """Appointment lifecycle statuses."""

    PENDING = "PENDING"  # Requested by the client, awaiting the professional
    ACCEPTED = "ACCEPTED"  # Confirmed by the professional
    REJECTED = "REJECTED"  # Declined by the professional
    CANCELLED = "CANCELLED"  # Withdrawn by either party before it happens
    COMPLETED = "COMPLETED"  # Took place

    @property
    def holds_calendar(self) -> bool:
        return self in CALENDAR_HOLDING_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


CALENDAR_HOLDING_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.ACCEPTED})
TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.REJECTED, AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED}
)


class ActorRole(str, Enum):
    """Role an actor plays relative to a specific appointment."""

    CLIENT = "client"
    PROFESSIONAL = "professional"
    OUTSIDER = "outsider"


class ErrorKind(str, Enum):
    """Every error kind the engine can surface."""

    INVALID_PAST_SCHEDULE = "INVALID_PAST_SCHEDULE"
    HORIZON_EXCEEDED = "HORIZON_EXCEEDED"
    OUTSIDE_BUSINESS_HOURS = "OUTSIDE_BUSINESS_HOURS"
    WEEKEND_NOT_ALLOWED = "WEEKEND_NOT_ALLOWED"
    INSUFFICIENT_EDIT_LEAD_TIME = "INSUFFICIENT_EDIT_LEAD_TIME"
    INSUFFICIENT_CANCEL_LEAD_TIME = "INSUFFICIENT_CANCEL_LEAD_TIME"
    SLOT_CONFLICT = "SLOT_CONFLICT"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    NOT_AUTHORIZED_FOR_TRANSITION = "NOT_AUTHORIZED_FOR_TRANSITION"
    APPOINTMENT_STILL_FUTURE = "APPOINTMENT_STILL_FUTURE"
    SERVICE_NOT_FOUND = "SERVICE_NOT_FOUND"
    PROFESSIONAL_NOT_FOUND = "PROFESSIONAL_NOT_FOUND"
    APPOINTMENT_NOT_FOUND = "APPOINTMENT_NOT_FOUND"
