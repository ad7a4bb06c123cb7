# backend/scheduling/services/appointment_service.py
"""
Appointment Service for the marketplace.

Application service around the Scheduling Engine. It owns the database
transaction the engine deliberately stays out of: every write takes a row
lock on the professional (SQLite engines take the database write lock at
BEGIN instead), asks the engine for a decision against the
calendar read inside that transaction, and persists the result before
committing. On PostgreSQL the exclusion constraint on ``appointments`` is
the last line; its violations surface as ``SlotConflictException`` too.

Also serves the read side: single appointment lookups with access checks,
upcoming and history listings, statistics and availability.
"""

from contextlib import contextmanager
from datetime import date, datetime
import logging
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.clock import Clock, normalize_instant
from ..core.enums import ActorRole, AppointmentStatus
from ..core.exceptions import (
    AppointmentAccessDeniedException,
    ProfessionalNotFoundException,
    ServiceException,
    SlotConflictException,
    ValidationException,
)
from ..domain.appointment import Appointment, AppointmentRequest
from ..domain.rules import BusinessRules
from ..domain.slots import SlotResult
from ..models.appointment import NO_OVERLAP_CONSTRAINT
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .scheduling_engine import SchedulingEngine
from .status_machine import resolve_actor_role

logger = logging.getLogger(__name__)

_EXCLUSION_MARKERS = (NO_OVERLAP_CONSTRAINT, "exclusion constraint")


class AppointmentService(BaseService):
    """
    Service layer for appointment operations.

    Coordinates the engine with the SQLAlchemy repositories and the
    transaction boundary.
    """

    def __init__(
        self,
        db: Session,
        rules: Optional[BusinessRules] = None,
        clock: Optional[Clock] = None,
        repository: Optional[Any] = None,
        catalog_repository: Optional[Any] = None,
    ):
        """
        Initialize appointment service.

        Args:
            db: Database session
            rules: Business rules, defaults to the engine defaults
            clock: Clock used for decisions and listings
            repository: Optional AppointmentRepository (for testing)
            catalog_repository: Optional ServiceCatalogRepository (for testing)
        """
        super().__init__()
        self.db = db
        self.repository = repository or RepositoryFactory.create_appointment_repository(db)
        self.catalog_repository = (
            catalog_repository or RepositoryFactory.create_service_catalog_repository(db)
        )
        self.engine = SchedulingEngine(self.repository, self.catalog_repository, rules, clock)

    @property
    def clock(self) -> Clock:
        return self.engine.clock

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Integrity errors are re-raised untouched so callers can translate
        constraint violations; other database errors become ServiceException.
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except IntegrityError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise ServiceException(f"Database operation failed: {str(e)}") from e
        except Exception:
            self.db.rollback()
            raise

    def _raise_conflict_from_integrity_error(
        self, exc: IntegrityError, appointment: Optional[Appointment]
    ) -> None:
        """
        Translate exclusion-constraint violations into slot conflicts so
        callers receive the same error as a conflict the engine caught.
        """
        message = str(exc.orig if exc.orig is not None else exc).lower()
        if any(marker in message for marker in _EXCLUSION_MARKERS):
            details: Dict[str, Any] = {"source": "storage"}
            if appointment is not None:
                details.update(
                    requested_start=appointment.scheduled_start.isoformat(),
                    requested_end=appointment.scheduled_end.isoformat(),
                )
            self.logger.warning(f"Storage rejected overlapping appointment: {exc}")
            raise SlotConflictException(details=details) from exc
        raise exc

    def _lock_professional(self, professional_id: str) -> None:
        if not self.repository.lock_professional(professional_id):
            raise ProfessionalNotFoundException(professional_id)

    # Writes

    @BaseService.measure_operation("create_appointment")
    def create_appointment(self, request: AppointmentRequest) -> Appointment:
        """
        Book an appointment for a client.

        Args:
            request: Booking request

        Returns:
            The stored PENDING appointment

        Raises:
            DomainException subclasses from the engine
        """
        decided: Optional[Appointment] = None
        try:
            with self.transaction():
                self._lock_professional(request.professional_id)
                decided = self.engine.create(request)
                self.repository.persist(decided)
        except IntegrityError as exc:
            self._raise_conflict_from_integrity_error(exc, decided)

        self.log_operation(
            "create_appointment",
            appointment_id=decided.id,
            professional_id=decided.professional_id,
        )
        return decided

    @BaseService.measure_operation("reschedule_appointment")
    def reschedule_appointment(
        self, appointment_id: str, new_start: datetime, actor_id: str
    ) -> Appointment:
        """
        Move an appointment to a new start.

        Only the client or the professional of the appointment may move it.
        """
        decided: Optional[Appointment] = None
        try:
            with self.transaction():
                existing = self.repository.get_or_raise(appointment_id)
                self._ensure_party(existing, actor_id)
                self._lock_professional(existing.professional_id)
                decided = self.engine.reschedule(existing, normalize_instant(new_start))
                self.repository.update(decided)
        except IntegrityError as exc:
            self._raise_conflict_from_integrity_error(exc, decided)

        return decided

    @BaseService.measure_operation("change_appointment_status")
    def change_appointment_status(
        self,
        appointment_id: str,
        target: AppointmentStatus,
        actor_id: str,
        note: Optional[str] = None,
    ) -> Appointment:
        """
        Apply a status transition requested by ``actor_id``.

        A transition never adds calendar occupancy, so no professional lock
        is taken.
        """
        with self.transaction():
            existing = self.repository.get_or_raise(appointment_id)
            updated = self.engine.change_status(existing, target, actor_id, note=note)
            self.repository.update(updated)
        return updated

    # Reads

    def _ensure_party(self, appointment: Appointment, actor_id: str) -> ActorRole:
        role = resolve_actor_role(appointment, actor_id)
        if role == ActorRole.OUTSIDER:
            raise AppointmentAccessDeniedException(appointment.id, actor_id)
        return role

    def get_appointment(self, appointment_id: str, actor_id: str) -> Appointment:
        """Get an appointment visible to its client or professional."""
        appointment = self.repository.get_or_raise(appointment_id)
        self._ensure_party(appointment, actor_id)
        return appointment

    @staticmethod
    def _party_role(role: ActorRole) -> ActorRole:
        role = ActorRole(role)
        if role == ActorRole.OUTSIDER:
            raise ValidationException("Role must be client or professional", code="INVALID_ROLE")
        return role

    def get_upcoming_appointments(
        self, user_id: str, role: ActorRole, limit: Optional[int] = None
    ) -> List[Appointment]:
        """Calendar-holding appointments of the user that start in the future."""
        return self.repository.list_for_party(
            user_id, self._party_role(role), upcoming_after=self.clock.now(), limit=limit
        )

    def get_appointment_history(
        self, user_id: str, role: ActorRole, limit: Optional[int] = None
    ) -> List[Appointment]:
        """Appointments of the user that already started, or were completed."""
        return self.repository.list_for_party(
            user_id, self._party_role(role), history_before=self.clock.now(), limit=limit
        )

    def get_stats(
        self,
        professional_id: Optional[str] = None,
        client_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Count appointments per status.

        Returns:
            Per-status counts keyed by lower-case status, ``total`` and the
            percentage of appointments completed
        """
        counts = self.repository.count_by_status(
            professional_id=professional_id,
            client_id=client_id,
            date_from=normalize_instant(date_from) if date_from else None,
            date_to=normalize_instant(date_to) if date_to else None,
        )
        total = sum(counts.values())
        completed = counts.get(AppointmentStatus.COMPLETED.value, 0)
        stats: Dict[str, Any] = {status.lower(): count for status, count in counts.items()}
        stats["total"] = total
        stats["completion_rate"] = round(completed / total * 100, 2) if total else 0.0
        return stats

    def get_party_stats(
        self,
        user_id: str,
        role: ActorRole,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Statistics of the appointments where ``user_id`` is on the given side."""
        if self._party_role(role) == ActorRole.PROFESSIONAL:
            return self.get_stats(professional_id=user_id, date_from=date_from, date_to=date_to)
        return self.get_stats(client_id=user_id, date_from=date_from, date_to=date_to)

    def check_availability(
        self, professional_id: str, service_id: str, target_date: date
    ) -> List[SlotResult]:
        """Slots of ``target_date`` for the service's duration."""
        return self.engine.check_availability_for_service(professional_id, service_id, target_date)
