# backend/scheduling/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .actor import get_actor_id
from .database import get_db
from .services import get_appointment_service, get_business_rules, get_clock

__all__ = [
    # Actor
    "get_actor_id",
    # Database
    "get_db",
    # Services
    "get_appointment_service",
    "get_business_rules",
    "get_clock",
]
