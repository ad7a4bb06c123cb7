# backend/scheduling/models/professional.py
"""Professional model: the party whose calendar is being booked."""

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..core.ulid_helper import generate_ulid
from ..database import Base


class Professional(Base):
    __tablename__ = "professionals"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    services = relationship("Service", back_populates="professional")

    def __repr__(self) -> str:
        return f"<Professional {self.id}: {self.name} active={self.is_active}>"
