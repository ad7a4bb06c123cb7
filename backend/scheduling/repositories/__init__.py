# backend/scheduling/repositories/__init__.py
"""
Repository layer: the Calendar Store and Service Resolver implementations.

The in-memory implementations serve tests and embedding; the SQLAlchemy
repositories are the reference persistence adapter.
"""

from .appointment_repository import AppointmentRepository
from .base_repository import BaseRepository
from .calendar_store import (
    AppointmentWriter,
    CalendarStore,
    InMemoryCalendarStore,
    InMemoryServiceCatalog,
    ServiceResolver,
)
from .factory import RepositoryFactory
from .service_catalog_repository import ServiceCatalogRepository

__all__ = [
    "AppointmentRepository",
    "AppointmentWriter",
    "BaseRepository",
    "CalendarStore",
    "InMemoryCalendarStore",
    "InMemoryServiceCatalog",
    "RepositoryFactory",
    "ServiceCatalogRepository",
    "ServiceResolver",
]
