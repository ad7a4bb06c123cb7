"""SQLAlchemy models backing the reference calendar store."""

from .appointment import AppointmentRecord
from .professional import Professional
from .service import Service

__all__ = ["AppointmentRecord", "Professional", "Service"]
