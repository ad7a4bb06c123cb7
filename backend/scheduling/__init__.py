"""Appointment scheduling and conflict engine for the service marketplace."""

__version__ = "0.1.0"
