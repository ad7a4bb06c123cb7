# backend/scheduling/models/appointment.py
"""
Appointment model.

Stores the start instant and the duration resolved at booking time; the end
is never stored. On PostgreSQL an exclusion constraint keeps the
calendar-holding appointments of a professional from overlapping, as the
storage-level backstop for concurrent bookings.
"""

import logging

from sqlalchemy import (
    DDL,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.orm import relationship

from ..core.enums import AppointmentStatus
from ..core.ulid_helper import generate_ulid
from ..database import Base

logger = logging.getLogger(__name__)

NO_OVERLAP_CONSTRAINT = "appointments_no_overlap_per_professional"


class AppointmentRecord(Base):
    __tablename__ = "appointments"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)

    client_id = Column(String(26), nullable=False, index=True)
    professional_id = Column(String(26), ForeignKey("professionals.id"), nullable=False)
    service_id = Column(String(26), ForeignKey("services.id"), nullable=False)

    scheduled_start = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    status = Column(String(20), nullable=False, default=AppointmentStatus.PENDING.value, index=True)
    location = Column(Text, nullable=True)
    client_notes = Column(Text, nullable=True)
    professional_notes = Column(Text, nullable=True)

    cancellation_reason = Column(Text, nullable=True)
    cancelled_by_id = Column(String(26), nullable=True)

    # Timestamps are engine decisions, written as given
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    professional = relationship("Professional")
    service = relationship("Service")

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'ACCEPTED', 'REJECTED', 'CANCELLED', 'COMPLETED')",
            name="ck_appointments_status",
        ),
        CheckConstraint("duration_minutes > 0", name="check_appointment_duration_positive"),
        Index("ix_appointments_professional_start", "professional_id", "scheduled_start"),
    )

    def __repr__(self) -> str:
        return (
            f"<AppointmentRecord {self.id}: professional={self.professional_id}, "
            f"start={self.scheduled_start}, duration={self.duration_minutes}, status={self.status}>"
        )


event.listen(
    AppointmentRecord.__table__,
    "after_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
event.listen(
    AppointmentRecord.__table__,
    "after_create",
    DDL(
        f"""
        ALTER TABLE appointments
          ADD CONSTRAINT {NO_OVERLAP_CONSTRAINT}
          EXCLUDE USING gist (
            professional_id WITH =,
            tsrange(
              scheduled_start,
              scheduled_start + make_interval(mins => duration_minutes),
              '[)'
            ) WITH &&
          )
          WHERE (status IN ('PENDING', 'ACCEPTED'))
        """
    ).execute_if(dialect="postgresql"),
)
