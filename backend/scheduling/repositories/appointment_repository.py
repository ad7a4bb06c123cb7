# backend/scheduling/repositories/appointment_repository.py
"""
Appointment Repository for the scheduling persistence adapter.

Implements the Calendar Store read the engine consumes plus the writes and
listings the application service needs:
- Calendar interval reads (PENDING/ACCEPTED only)
- Persist/update of engine decisions
- Per-party listings (upcoming, history)
- Status statistics
- Per-professional row locking for fetch -> check -> persist
"""

from datetime import datetime, timedelta
import logging
from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.enums import CALENDAR_HOLDING_STATUSES, ActorRole, AppointmentStatus
from ..core.exceptions import AppointmentNotFoundException, RepositoryException
from ..domain.appointment import Appointment
from ..domain.interval import Interval, overlaps
from ..models.appointment import AppointmentRecord
from ..models.professional import Professional
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_HOLDING_VALUES = [status.value for status in CALENDAR_HOLDING_STATUSES]

_RECORD_FIELDS = (
    "id",
    "client_id",
    "professional_id",
    "service_id",
    "scheduled_start",
    "duration_minutes",
    "location",
    "client_notes",
    "professional_notes",
    "cancellation_reason",
    "cancelled_by_id",
    "created_at",
    "updated_at",
    "accepted_at",
    "rejected_at",
    "cancelled_at",
    "completed_at",
)


def record_to_domain(record: AppointmentRecord) -> Appointment:
    values = {field: getattr(record, field) for field in _RECORD_FIELDS}
    return Appointment(status=AppointmentStatus(record.status), **values)


def domain_to_columns(appointment: Appointment) -> Dict[str, object]:
    values: Dict[str, object] = {field: getattr(appointment, field) for field in _RECORD_FIELDS}
    values["status"] = appointment.status.value
    return values


class AppointmentRepository(BaseRepository[AppointmentRecord]):
    """
    SQLAlchemy Calendar Store and appointment writer.

    Returns domain ``Appointment`` values; ORM records never leave the
    repository. Nothing here commits.
    """

    def __init__(self, db: Session):
        super().__init__(db, AppointmentRecord)
        self.logger = logging.getLogger(__name__)

    # Calendar Store

    def fetch_calendar_intervals(
        self, professional_id: str, from_instant: datetime, to_instant: datetime
    ) -> List[Interval]:
        """
        Get PENDING/ACCEPTED intervals of a professional overlapping a window.

        The end is not a column, so the query bounds the start by the longest
        stored duration among the professional's holding appointments and the
        exact overlap is checked on the rows.
        """
        holding = (
            AppointmentRecord.professional_id == professional_id,
            AppointmentRecord.status.in_(_HOLDING_VALUES),
        )
        try:
            longest = (
                self.db.query(func.max(AppointmentRecord.duration_minutes))
                .filter(*holding)
                .scalar()
            )
            if longest is None:
                return []

            lower_bound = from_instant - timedelta(minutes=int(longest))
            rows = (
                self.db.query(
                    AppointmentRecord.id,
                    AppointmentRecord.scheduled_start,
                    AppointmentRecord.duration_minutes,
                )
                .filter(
                    *holding,
                    AppointmentRecord.scheduled_start < to_instant,
                    AppointmentRecord.scheduled_start >= lower_bound,
                )
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error fetching calendar for {professional_id}: {str(e)}")
            raise RepositoryException(f"Failed to fetch calendar intervals: {str(e)}")

        window = Interval(from_instant, to_instant)
        intervals = []
        for row in rows:
            interval = Interval.from_duration(row.scheduled_start, row.duration_minutes, row.id)
            if overlaps(interval, window):
                intervals.append(interval)
        return intervals

    # Reads

    def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        record = self.get_by_id(appointment_id)
        return record_to_domain(record) if record else None

    def get_or_raise(self, appointment_id: str) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundException(appointment_id)
        return appointment

    def list_for_party(
        self,
        user_id: str,
        role: ActorRole,
        *,
        upcoming_after: Optional[datetime] = None,
        history_before: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Appointment]:
        """
        Get appointments where ``user_id`` is the client or the professional.

        Args:
            user_id: Client or professional ID
            role: Which side of the appointment ``user_id`` is on
            upcoming_after: Only calendar-holding appointments starting after this instant
            history_before: Only appointments starting at or before this instant, or COMPLETED
            limit: Optional result limit

        Returns:
            Appointments ordered by start (most recent first for history)
        """
        column = (
            AppointmentRecord.professional_id
            if ActorRole(role) == ActorRole.PROFESSIONAL
            else AppointmentRecord.client_id
        )
        try:
            query = self.db.query(AppointmentRecord).filter(column == user_id)

            if upcoming_after is not None:
                query = query.filter(
                    AppointmentRecord.scheduled_start > upcoming_after,
                    AppointmentRecord.status.in_(_HOLDING_VALUES),
                )
            if history_before is not None:
                query = query.filter(
                    or_(
                        AppointmentRecord.scheduled_start <= history_before,
                        AppointmentRecord.status == AppointmentStatus.COMPLETED.value,
                    )
                )

            if history_before is not None:
                query = query.order_by(AppointmentRecord.scheduled_start.desc())
            else:
                query = query.order_by(AppointmentRecord.scheduled_start.asc())

            if limit:
                query = query.limit(limit)

            return [record_to_domain(record) for record in query.all()]
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing appointments for {role} {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to list appointments: {str(e)}")

    def count_by_status(
        self,
        professional_id: Optional[str] = None,
        client_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Dict[str, int]:
        """
        Count appointments grouped by status.

        Every status is present in the result, zero when absent.
        """
        try:
            query = self.db.query(
                AppointmentRecord.status, func.count(AppointmentRecord.id).label("count")
            )
            if professional_id:
                query = query.filter(AppointmentRecord.professional_id == professional_id)
            if client_id:
                query = query.filter(AppointmentRecord.client_id == client_id)
            if date_from:
                query = query.filter(AppointmentRecord.scheduled_start >= date_from)
            if date_to:
                query = query.filter(AppointmentRecord.scheduled_start <= date_to)

            status_counts = {status.value: 0 for status in AppointmentStatus}
            for row in query.group_by(AppointmentRecord.status).all():
                status_counts[row.status] = row.count
            return status_counts
        except SQLAlchemyError as e:
            self.logger.error(f"Error counting appointments by status: {str(e)}")
            raise RepositoryException(f"Failed to count appointments by status: {str(e)}")

    # Writes

    def persist(self, appointment: Appointment) -> Appointment:
        """Insert a new appointment. Integrity errors are re-raised for conflict handling."""
        try:
            record = AppointmentRecord(**domain_to_columns(appointment))
            self.db.add(record)
            self.db.flush()
            return appointment
        except IntegrityError:
            self.logger.warning(f"Integrity error persisting appointment {appointment.id}")
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error persisting appointment {appointment.id}: {str(e)}")
            raise RepositoryException(f"Failed to persist appointment: {str(e)}")

    def update(self, appointment: Appointment) -> Appointment:
        """Overwrite the stored appointment with the engine's decision."""
        record = self.get_by_id(appointment.id)
        if record is None:
            raise AppointmentNotFoundException(appointment.id)
        try:
            for field, value in domain_to_columns(appointment).items():
                setattr(record, field, value)
            self.db.flush()
            return appointment
        except IntegrityError:
            self.logger.warning(f"Integrity error updating appointment {appointment.id}")
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating appointment {appointment.id}: {str(e)}")
            raise RepositoryException(f"Failed to update appointment: {str(e)}")

    # Locking

    def lock_professional(self, professional_id: str) -> bool:
        """
        Take a row lock on the professional for the rest of the transaction.

        Serializes fetch -> check -> persist per professional on backends with
        ``SELECT ... FOR UPDATE``. SQLite ignores the clause; engines built by
        ``database.build_engine`` open every SQLite transaction with
        ``BEGIN IMMEDIATE`` instead.

        Returns:
            Whether the professional row exists
        """
        try:
            row = (
                self.db.query(Professional.id)
                .filter(Professional.id == professional_id)
                .with_for_update()
                .first()
            )
            return row is not None
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking professional {professional_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock professional: {str(e)}")
