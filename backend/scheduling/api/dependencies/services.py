# backend/scheduling/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.clock import Clock, SystemClock
from ...core.config import settings
from ...domain.rules import BusinessRules
from ...services.appointment_service import AppointmentService
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_business_rules() -> BusinessRules:
    """Business rules built once from settings."""
    rules = BusinessRules.from_settings(settings)
    logger.info(
        "Scheduling rules: hours %s-%s, step %sm, horizon %s months",
        *rules.hours.describe(),
        rules.slot_step_minutes,
        rules.horizon_months,
    )
    return rules


def get_clock() -> Clock:
    return SystemClock()


def get_appointment_service(
    db: Session = Depends(get_db),
    rules: BusinessRules = Depends(get_business_rules),
    clock: Clock = Depends(get_clock),
) -> AppointmentService:
    """
    Get appointment service instance with all dependencies.

    Args:
        db: Database session
        rules: Business rules from settings
        clock: Clock for scheduling decisions

    Returns:
        AppointmentService instance
    """
    return AppointmentService(db, rules=rules, clock=clock)
