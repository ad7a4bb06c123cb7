# backend/scheduling/repositories/factory.py
"""
Repository Factory for the scheduling persistence adapter.

Provides centralized creation of repository instances so services receive
their collaborators through one seam.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .appointment_repository import AppointmentRepository
    from .service_catalog_repository import ServiceCatalogRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_appointment_repository(db: Session) -> "AppointmentRepository":
        """Create the SQLAlchemy calendar store and appointment writer."""
        from .appointment_repository import AppointmentRepository

        return AppointmentRepository(db)

    @staticmethod
    def create_service_catalog_repository(db: Session) -> "ServiceCatalogRepository":
        """Create the SQLAlchemy service resolver."""
        from .service_catalog_repository import ServiceCatalogRepository

        return ServiceCatalogRepository(db)
