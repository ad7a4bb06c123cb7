"""Pure scheduling value types: intervals, appointments and rule settings."""

from .appointment import Appointment, AppointmentRequest
from .interval import Interval, conflicts, find_conflicts, overlaps
from .rules import BusinessHours, BusinessRules
from .slots import SlotResult

__all__ = [
    "Appointment",
    "AppointmentRequest",
    "BusinessHours",
    "BusinessRules",
    "Interval",
    "SlotResult",
    "conflicts",
    "find_conflicts",
    "overlaps",
]
