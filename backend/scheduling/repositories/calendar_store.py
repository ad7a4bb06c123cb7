# backend/scheduling/repositories/calendar_store.py
"""
Collaborator interfaces consumed by the scheduling engine.

The engine reads calendars and resolves service durations through these
protocols and never writes. Two implementations ship with the package: the
in-memory ones below (tests and embedding) and the SQLAlchemy repositories
in ``appointment_repository`` and ``service_catalog_repository``.

Concurrency contract: the engine's conflict check is necessary but not
sufficient. Whoever persists must make fetch -> check -> persist atomic per
professional, through a serializable transaction, an exclusion constraint,
or an optimistic retry.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
import logging
import threading
from typing import Dict, Iterator, List, Optional, Protocol

from ..core.enums import AppointmentStatus
from ..core.exceptions import (
    AppointmentNotFoundException,
    ProfessionalNotFoundException,
    ServiceNotFoundException,
    SlotConflictException,
)
from ..domain.appointment import Appointment
from ..domain.interval import Interval, find_conflicts, overlaps

logger = logging.getLogger(__name__)


class CalendarStore(Protocol):
    def fetch_calendar_intervals(
        self, professional_id: str, from_instant: datetime, to_instant: datetime
    ) -> List[Interval]:
        """Return PENDING/ACCEPTED intervals of the professional overlapping the window."""
        ...


class ServiceResolver(Protocol):
    def resolve_service_duration(self, service_id: str, professional_id: str) -> int:
        """Return the service duration in minutes or raise a not-found error."""
        ...


class AppointmentWriter(Protocol):
    def persist(self, appointment: Appointment) -> Appointment:
        ...

    def update(self, appointment: Appointment) -> Appointment:
        ...


class InMemoryCalendarStore:
    """
    Dict-backed calendar store.

    ``persist``/``update`` re-check overlap under a lock so the store acts as
    its own exclusion constraint, and ``locked`` lets callers run
    fetch -> check -> persist as one critical section per professional.
    """

    def __init__(self, appointments: Optional[List[Appointment]] = None) -> None:
        self._appointments: Dict[str, Appointment] = {}
        self._lock = threading.RLock()
        for appointment in appointments or []:
            self._appointments[appointment.id] = appointment

    @contextmanager
    def locked(self) -> Iterator["InMemoryCalendarStore"]:
        with self._lock:
            yield self

    def fetch_calendar_intervals(
        self, professional_id: str, from_instant: datetime, to_instant: datetime
    ) -> List[Interval]:
        window = Interval(from_instant, to_instant)
        with self._lock:
            return [
                appointment.interval
                for appointment in self._appointments.values()
                if appointment.professional_id == professional_id
                and appointment.holds_calendar
                and overlaps(appointment.interval, window)
            ]

    def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        return self._appointments.get(appointment_id)

    def get_or_raise(self, appointment_id: str) -> Appointment:
        appointment = self.get_by_id(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundException(appointment_id)
        return appointment

    def persist(self, appointment: Appointment) -> Appointment:
        with self._lock:
            self._ensure_no_overlap(appointment)
            self._appointments[appointment.id] = appointment
        logger.debug("Stored appointment %s", appointment.id)
        return appointment

    def update(self, appointment: Appointment) -> Appointment:
        with self._lock:
            if appointment.id not in self._appointments:
                raise AppointmentNotFoundException(appointment.id)
            self._ensure_no_overlap(appointment)
            self._appointments[appointment.id] = appointment
        return appointment

    def all(self) -> List[Appointment]:
        with self._lock:
            return sorted(self._appointments.values(), key=lambda a: a.scheduled_start)

    def count_by_status(self, status: AppointmentStatus) -> int:
        return sum(1 for a in self.all() if a.status == status)

    def _ensure_no_overlap(self, appointment: Appointment) -> None:
        if not appointment.holds_calendar:
            return
        others = [
            other.interval
            for other in self._appointments.values()
            if other.professional_id == appointment.professional_id and other.holds_calendar
        ]
        hits = find_conflicts(appointment.interval, others, exclude_appointment_id=appointment.id)
        if hits:
            raise SlotConflictException(
                details={"conflicts": [hit.appointment_id for hit in hits], "source": "store"}
            )


@dataclass(frozen=True)
class CatalogService:
    service_id: str
    professional_id: str
    duration_minutes: int
    name: str = ""
    is_active: bool = True


class InMemoryServiceCatalog:
    """Service resolver over a fixed set of professionals and services."""

    def __init__(self) -> None:
        self._professionals: Dict[str, bool] = {}
        self._services: Dict[str, CatalogService] = {}

    def add_professional(self, professional_id: str, is_active: bool = True) -> None:
        self._professionals[professional_id] = is_active

    def add_service(
        self,
        service_id: str,
        professional_id: str,
        duration_minutes: int,
        name: str = "",
        is_active: bool = True,
    ) -> CatalogService:
        if duration_minutes <= 0:
            raise ValueError("Service duration must be positive")
        self._professionals.setdefault(professional_id, True)
        service = CatalogService(service_id, professional_id, duration_minutes, name, is_active)
        self._services[service_id] = service
        return service

    def resolve_service_duration(self, service_id: str, professional_id: str) -> int:
        if not self._professionals.get(professional_id, False):
            raise ProfessionalNotFoundException(professional_id)
        service = self._services.get(service_id)
        if service is None or not service.is_active or service.professional_id != professional_id:
            raise ServiceNotFoundException(service_id, professional_id)
        return service.duration_minutes
