"""Pydantic request and response models for the HTTP adapter."""

from .appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatsResponse,
    AppointmentStatusUpdate,
    AvailabilityResponse,
    SlotResponse,
)

__all__ = [
    "AppointmentCreate",
    "AppointmentListResponse",
    "AppointmentReschedule",
    "AppointmentResponse",
    "AppointmentStatsResponse",
    "AppointmentStatusUpdate",
    "AvailabilityResponse",
    "SlotResponse",
]
