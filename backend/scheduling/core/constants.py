"""Scheduling constants shared across the engine and its adapters."""

from __future__ import annotations

from datetime import time

# Business hours (single implicit timezone)
DEFAULT_BUSINESS_OPEN = time(8, 0)
DEFAULT_BUSINESS_CLOSE = time(18, 0)

# Slot enumeration
DEFAULT_SLOT_STEP_MINUTES = 30

# Booking policy
DEFAULT_BOOKING_HORIZON_MONTHS = 3
DEFAULT_EDIT_LEAD_TIME_HOURS = 24
DEFAULT_CANCEL_LEAD_TIME_HOURS = 2

# Saturday and Sunday, as returned by date.weekday()
DEFAULT_WEEKEND_DAYS = frozenset({5, 6})

# Longest bookable service
MAX_SERVICE_DURATION = 480  # minutes (8 hours)

# Query limits
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 1000

# Error messages
ERROR_PAST_SCHEDULE = "Cannot schedule an appointment in the past"
ERROR_HORIZON_EXCEEDED = "Cannot schedule more than {months} months in advance"
ERROR_OUTSIDE_BUSINESS_HOURS = "Appointments must be scheduled between {open} and {close}"
ERROR_WEEKEND = "Appointments cannot be scheduled on weekends"
ERROR_EDIT_LEAD_TIME = "Appointments can only be rescheduled at least {hours} hours in advance"
ERROR_CANCEL_LEAD_TIME = "Appointments can only be cancelled at least {hours} hours in advance"
ERROR_SLOT_CONFLICT = "This time slot conflicts with an existing appointment"
ERROR_INVALID_TRANSITION = "Cannot change appointment status from {current} to {target}"
ERROR_NOT_AUTHORIZED = "{actor} is not allowed to change this appointment to {target}"
ERROR_STILL_FUTURE = "Cannot complete an appointment that has not ended yet"
ERROR_SERVICE_NOT_FOUND = "Service not found or does not belong to the professional"
ERROR_PROFESSIONAL_NOT_FOUND = "Professional not found or inactive"
ERROR_APPOINTMENT_NOT_FOUND = "Appointment not found"
ERROR_ACCESS_DENIED = "You do not have access to this appointment"

# Slot reasons
SLOT_REASON_OCCUPIED = "occupied"
SLOT_REASON_OUTSIDE_BUSINESS_HOURS = "outside business hours"
SLOT_REASON_PAST = "in the past"
