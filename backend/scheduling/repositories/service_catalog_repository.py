# backend/scheduling/repositories/service_catalog_repository.py
"""
Service Catalog Repository for the scheduling persistence adapter.

Resolves the duration of a professional's service for the engine, and
registers professionals and services.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import (
    ProfessionalNotFoundException,
    RepositoryException,
    ServiceNotFoundException,
    ValidationException,
)
from ..models.professional import Professional
from ..models.service import Service
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ServiceCatalogRepository(BaseRepository[Service]):
    """SQLAlchemy Service Resolver."""

    def __init__(self, db: Session, max_service_duration_minutes: Optional[int] = None):
        super().__init__(db, Service)
        self.logger = logging.getLogger(__name__)
        self.max_service_duration_minutes = (
            max_service_duration_minutes or settings.max_service_duration_minutes
        )

    def get_professional(self, professional_id: str) -> Optional[Professional]:
        try:
            return self.db.query(Professional).filter(Professional.id == professional_id).first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting professional {professional_id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve professional: {str(e)}")

    def resolve_service_duration(self, service_id: str, professional_id: str) -> int:
        """
        Get the duration of a service offered by a professional.

        Raises:
            ProfessionalNotFoundException: Unknown or inactive professional
            ServiceNotFoundException: Unknown or inactive service, or owned by someone else
        """
        professional = self.get_professional(professional_id)
        if professional is None or not professional.is_active:
            raise ProfessionalNotFoundException(professional_id)

        service = self.get_by_id(service_id)
        if service is None or not service.is_active or service.professional_id != professional_id:
            raise ServiceNotFoundException(service_id, professional_id)

        return int(service.duration_minutes)

    def add_professional(self, name: str = "", professional_id: Optional[str] = None) -> Professional:
        """Register a professional. Does NOT commit."""
        try:
            professional = Professional(name=name)
            if professional_id:
                professional.id = professional_id
            self.db.add(professional)
            self.db.flush()
            return professional
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating professional: {str(e)}")
            raise RepositoryException(f"Failed to create professional: {str(e)}")

    def add_service(
        self,
        professional_id: str,
        duration_minutes: int,
        name: str = "",
        service_id: Optional[str] = None,
    ) -> Service:
        """
        Register a service for a professional. Does NOT commit.

        Raises:
            ValidationException: Duration not positive or above the configured maximum
        """
        if duration_minutes <= 0 or duration_minutes > self.max_service_duration_minutes:
            raise ValidationException(
                f"Service duration must be between 1 and {self.max_service_duration_minutes} minutes",
                code="INVALID_DURATION",
                details={"duration_minutes": duration_minutes},
            )
        values ={"professional_id": professional_id, "duration_minutes": duration_minutes, "name": name}
        if service_id:
            values["id"] = service_id
        return self.create(**values)
