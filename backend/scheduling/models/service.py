# backend/scheduling/models/service.py
"""Bookable service offered by a professional."""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Service(Base):
    __tablename__ = "services"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    professional_id = Column(String(26), ForeignKey("professionals.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    professional = relationship("Professional", back_populates="services")

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="check_service_duration_positive"),
    )

    def __repr__(self) -> str:
        return f"<Service {self.id}: {self.name} ({self.duration_minutes}m)>"
