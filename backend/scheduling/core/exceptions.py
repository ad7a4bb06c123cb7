# backend/scheduling/core/exceptions.py
"""
Domain-specific exceptions for the scheduling engine.

Every rule the engine enforces raises its own exception class carrying a
stable ``code`` (see ``ErrorKind``), a human readable message and a
``details`` mapping. Callers translate them to their transport; the HTTP
adapter uses ``to_http_exception``.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from .constants import (
    ERROR_ACCESS_DENIED,
    ERROR_APPOINTMENT_NOT_FOUND,
    ERROR_CANCEL_LEAD_TIME,
    ERROR_EDIT_LEAD_TIME,
    ERROR_HORIZON_EXCEEDED,
    ERROR_INVALID_TRANSITION,
    ERROR_NOT_AUTHORIZED,
    ERROR_OUTSIDE_BUSINESS_HOURS,
    ERROR_PAST_SCHEDULE,
    ERROR_PROFESSIONAL_NOT_FOUND,
    ERROR_SERVICE_NOT_FOUND,
    ERROR_SLOT_CONFLICT,
    ERROR_STILL_FUTURE,
    ERROR_WEEKEND,
)
from .enums import ErrorKind

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    @property
    def kind(self) -> Optional[ErrorKind]:
        """The engine error kind, when the code is one of the known kinds."""
        try:
            return ErrorKind(self.code)
        except ValueError:
            return None

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when the shape of a request violates a scheduling rule."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ForbiddenException(DomainException):
    """Raised when an actor lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Request-shape errors


class InvalidPastScheduleException(ValidationException):
    def __init__(self, scheduled_start: datetime, now: datetime):
        super().__init__(
            message=ERROR_PAST_SCHEDULE,
            code=ErrorKind.INVALID_PAST_SCHEDULE.value,
            details={"scheduled_start": scheduled_start.isoformat(), "now": now.isoformat()},
        )


class HorizonExceededException(ValidationException):
    def __init__(self, scheduled_start: datetime, latest_start: datetime, months: int):
        super().__init__(
            message=ERROR_HORIZON_EXCEEDED.format(months=months),
            code=ErrorKind.HORIZON_EXCEEDED.value,
            details={
                "scheduled_start": scheduled_start.isoformat(),
                "latest_start": latest_start.isoformat(),
                "horizon_months": months,
            },
        )


class OutsideBusinessHoursException(ValidationException):
    def __init__(self, scheduled_start: datetime, scheduled_end: datetime, open_: str, close: str):
        super().__init__(
            message=ERROR_OUTSIDE_BUSINESS_HOURS.format(open=open_, close=close),
            code=ErrorKind.OUTSIDE_BUSINESS_HOURS.value,
            details={
                "scheduled_start": scheduled_start.isoformat(),
                "scheduled_end": scheduled_end.isoformat(),
                "business_open": open_,
                "business_close": close,
            },
        )


class WeekendNotAllowedException(ValidationException):
    def __init__(self, scheduled_start: datetime):
        super().__init__(
            message=ERROR_WEEKEND,
            code=ErrorKind.WEEKEND_NOT_ALLOWED.value,
            details={
                "scheduled_start": scheduled_start.isoformat(),
                "weekday": scheduled_start.strftime("%A"),
            },
        )


# Policy errors tied to the current time


class InsufficientEditLeadTimeException(BusinessRuleException):
    def __init__(self, required_hours: int, provided_hours: float):
        super().__init__(
            message=ERROR_EDIT_LEAD_TIME.format(hours=required_hours),
            code=ErrorKind.INSUFFICIENT_EDIT_LEAD_TIME.value,
            details={"required_hours": required_hours, "provided_hours": provided_hours},
        )


class InsufficientCancelLeadTimeException(BusinessRuleException):
    def __init__(self, required_hours: int, provided_hours: float):
        super().__init__(
            message=ERROR_CANCEL_LEAD_TIME.format(hours=required_hours),
            code=ErrorKind.INSUFFICIENT_CANCEL_LEAD_TIME.value,
            details={"required_hours": required_hours, "provided_hours": provided_hours},
        )


# Calendar conflicts


class SlotConflictException(ConflictException):
    """Raised when another appointment already holds the requested interval."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or ERROR_SLOT_CONFLICT,
            code=ErrorKind.SLOT_CONFLICT.value,
            details=details or {},
        )


# State machine violations


class InvalidStatusTransitionException(BusinessRuleException):
    def __init__(self, current: str, target: str, reason: Optional[str] = None):
        details: Dict[str, Any] = {"current_status": current, "target_status": target}
        if reason:
            details["reason"] = reason
        super().__init__(
            message=ERROR_INVALID_TRANSITION.format(current=current, target=target),
            code=ErrorKind.INVALID_STATUS_TRANSITION.value,
            details=details,
        )


class NotAuthorizedForTransitionException(ForbiddenException):
    def __init__(self, actor_id: str, actor_role: str, target: str):
        super().__init__(
            message=ERROR_NOT_AUTHORIZED.format(actor=actor_role.capitalize(), target=target),
            code=ErrorKind.NOT_AUTHORIZED_FOR_TRANSITION.value,
            details={"actor_id": actor_id, "actor_role": actor_role, "target_status": target},
        )


class AppointmentStillFutureException(BusinessRuleException):
    def __init__(self, scheduled_end: datetime, now: datetime):
        super().__init__(
            message=ERROR_STILL_FUTURE,
            code=ErrorKind.APPOINTMENT_STILL_FUTURE.value,
            details={"scheduled_end": scheduled_end.isoformat(), "now": now.isoformat()},
        )


# Collaborator resolution failures


class ServiceNotFoundException(NotFoundException):
    def __init__(self, service_id: str, professional_id: Optional[str] = None):
        super().__init__(
            message=ERROR_SERVICE_NOT_FOUND,
            code=ErrorKind.SERVICE_NOT_FOUND.value,
            details={"service_id": service_id, "professional_id": professional_id},
        )


class ProfessionalNotFoundException(NotFoundException):
    def __init__(self, professional_id: str):
        super().__init__(
            message=ERROR_PROFESSIONAL_NOT_FOUND,
            code=ErrorKind.PROFESSIONAL_NOT_FOUND.value,
            details={"professional_id": professional_id},
        )


class AppointmentNotFoundException(NotFoundException):
    def __init__(self, appointment_id: str):
        super().__init__(
            message=ERROR_APPOINTMENT_NOT_FOUND,
            code=ErrorKind.APPOINTMENT_NOT_FOUND.value,
            details={"appointment_id": appointment_id},
        )


class AppointmentAccessDeniedException(ForbiddenException):
    """Raised when someone other than the client or professional reads an appointment."""

    def __init__(self, appointment_id: str, actor_id: str):
        super().__init__(
            message=ERROR_ACCESS_DENIED,
            code="APPOINTMENT_ACCESS_DENIED",
            details={"appointment_id": appointment_id, "actor_id": actor_id},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
