# backend/scheduling/services/scheduling_engine.py
"""
Scheduling Engine for the marketplace.

Facade over the Conflict Detector, Slot Generator, Business Rule Validator
and Status Transition Machine. The engine is synchronous, keeps no mutable
state and never writes: each operation returns the appointment the caller
should persist, or raises the most specific ``DomainException``.

The conflict check only sees what the Calendar Store returned at the time
of the call. Callers must run fetch -> check -> persist atomically per
professional (see ``AppointmentService``).
"""

from datetime import date, datetime
import logging
from typing import Callable, List, Optional, TypeVar

from ..core.clock import Clock, SystemClock, day_bounds, normalize_instant
from ..core.enums import AppointmentStatus
from ..core.exceptions import DomainException, InvalidStatusTransitionException
from ..domain.appointment import Appointment, AppointmentRequest
from ..domain.rules import BusinessRules
from ..domain.slots import SlotResult
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.calendar_store import CalendarStore, ServiceResolver
from .base import BaseService
from .business_rules import BusinessRuleValidator, ScheduleCheck
from .conflict_detector import ConflictDetector
from .slot_generator import SlotGenerator
from .status_machine import StatusTransitionMachine

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SchedulingEngine(BaseService):
    """
    Decides whether appointments can be created, moved or change status.

    Collaborators are injected; there is no process-wide storage handle.
    """

    def __init__(
        self,
        calendar_store: CalendarStore,
        service_resolver: ServiceResolver,
        rules: Optional[BusinessRules] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__()
        self.calendar_store = calendar_store
        self.service_resolver = service_resolver
        self.rules = rules or BusinessRules()
        self.clock: Clock = clock or SystemClock()
        self.conflict_detector = ConflictDetector()
        self.validator = BusinessRuleValidator(calendar_store, self.rules, self.conflict_detector)
        self.slot_generator = SlotGenerator(self.conflict_detector, self.rules.slot_step_minutes)
        self.status_machine = StatusTransitionMachine()

    def _now(self, now: Optional[datetime]) -> datetime:
        return normalize_instant(now) if now is not None else self.clock.now()

    def _decide(self, operation: str, decision: Callable[[], T]) -> T:
        """Run ``decision`` and record its outcome; errors propagate unchanged."""
        try:
            result = decision()
        except DomainException as exc:
            self.logger.warning(f"{operation} rejected: {exc.code} - {exc.message}")
            prometheus_metrics.record_decision(operation, exc.code)
            raise
        prometheus_metrics.record_decision(operation, "accepted")
        return result

    @BaseService.measure_operation("create")
    def create(self, request: AppointmentRequest, now: Optional[datetime] = None) -> Appointment:
        """
        Validate a booking request and build a PENDING appointment.

        Runs past, horizon, business hours, weekday and conflict checks.

        Args:
            request: Client's booking request
            now: Decision instant, defaults to the engine clock

        Returns:
            New appointment for the caller to persist

        Raises:
            ServiceNotFoundException, ProfessionalNotFoundException: from the resolver
            ValidationException subclasses: request shape violations
            SlotConflictException: the professional is already booked
        """
        current = self._now(now)

        def decision() -> Appointment:
            duration = self.service_resolver.resolve_service_duration(
                request.service_id, request.professional_id
            )
            self.validator.validate_creation(
                ScheduleCheck(
                    professional_id=request.professional_id,
                    scheduled_start=request.scheduled_start,
                    duration_minutes=duration,
                    now=current,
                )
            )
            appointment = Appointment.new(request, duration, current)
            self.logger.info(
                f"Appointment {appointment.id} accepted for {request.professional_id} "
                f"at {appointment.scheduled_start.isoformat()} ({duration}m)"
            )
            return appointment

        return self._decide("create", decision)

    @BaseService.measure_operation("reschedule")
    def reschedule(
        self, existing: Appointment, new_start: datetime, now: Optional[datetime] = None
    ) -> Appointment:
        """
        Move ``existing`` to ``new_start`` keeping its duration and status.

        Runs past, horizon, business hours, weekday, edit lead time (measured
        against the current start) and conflict checks, ignoring the
        appointment's own interval.
        """
        current = self._now(now)
        new_start = normalize_instant(new_start)

        def decision() -> Appointment:
            if not existing.holds_calendar:
                raise InvalidStatusTransitionException(
                    existing.status.value,
                    existing.status.value,
                    reason="Only PENDING or ACCEPTED appointments can be rescheduled",
                )
            self.validator.validate_reschedule(
                ScheduleCheck(
                    professional_id=existing.professional_id,
                    scheduled_start=new_start,
                    duration_minutes=existing.duration_minutes,
                    now=current,
                    current_start=existing.scheduled_start,
                    exclude_appointment_id=existing.id,
                )
            )
            self.logger.info(
                f"Appointment {existing.id} moved from {existing.scheduled_start.isoformat()} "
                f"to {new_start.isoformat()}"
            )
            return existing.with_changes(current, scheduled_start=new_start)

        return self._decide("reschedule", decision)

    @BaseService.measure_operation("check_availability")
    def check_availability(
        self,
        professional_id: str,
        target_date: date,
        duration_minutes: int,
        now: Optional[datetime] = None,
    ) -> List[SlotResult]:
        """
        Enumerate the day's slots for a service of ``duration_minutes``.

        The day's intervals are fetched once and handed to the Slot Generator.
        """
        current = self._now(now)
        day_start, day_end = day_bounds(target_date)
        intervals = self.calendar_store.fetch_calendar_intervals(professional_id, day_start, day_end)
        slots = self.slot_generator.generate_slots(
            target_date, duration_minutes, self.rules.hours, intervals, now=current
        )
        self.logger.debug(
            f"{sum(1 for s in slots if s.available)}/{len(slots)} slots free for "
            f"{professional_id} on {target_date.isoformat()}"
        )
        return slots

    def check_availability_for_service(
        self,
        professional_id: str,
        service_id: str,
        target_date: date,
        now: Optional[datetime] = None,
    ) -> List[SlotResult]:
        duration = self.service_resolver.resolve_service_duration(service_id, professional_id)
        return self.check_availability(professional_id, target_date, duration, now)

    @BaseService.measure_operation("change_status")
    def change_status(
        self,
        existing: Appointment,
        target: AppointmentStatus,
        actor_id: str,
        now: Optional[datetime] = None,
        *,
        note: Optional[str] = None,
    ) -> Appointment:
        """
        Apply a status transition requested by ``actor_id``.

        Cancellation additionally requires the cancel lead time before the
        appointment's start.

        Args:
            existing: Appointment as currently stored
            target: Requested status
            actor_id: Client or professional asking for the change
            now: Decision instant, defaults to the engine clock
            note: Cancellation reason for CANCELLED, professional note otherwise

        Returns:
            Updated appointment for the caller to persist
        """
        current = self._now(now)
        target = AppointmentStatus(target)

        def decision() -> Appointment:
            self.status_machine.validate(existing, target, actor_id, current)
            if target == AppointmentStatus.CANCELLED:
                self.validator.validate_cancellation(
                    ScheduleCheck(
                        professional_id=existing.professional_id,
                        scheduled_start=existing.scheduled_start,
                        duration_minutes=existing.duration_minutes,
                        now=current,
                    )
                )
            updated = self.status_machine.apply(existing, target, actor_id, current, note=note)
            prometheus_metrics.record_transition(existing.status.value, target.value)
            return updated

        return self._decide("change_status", decision)

    def accept(
        self, existing: Appointment, actor_id: str, now: Optional[datetime] = None, note: Optional[str] = None
    ) -> Appointment:
        return self.change_status(existing, AppointmentStatus.ACCEPTED, actor_id, now, note=note)

    def reject(
        self, existing: Appointment, actor_id: str, now: Optional[datetime] = None, note: Optional[str] = None
    ) -> Appointment:
        return self.change_status(existing, AppointmentStatus.REJECTED, actor_id, now, note=note)

    def cancel(
        self, existing: Appointment, actor_id: str, now: Optional[datetime] = None, reason: Optional[str] = None
    ) -> Appointment:
        return self.change_status(existing, AppointmentStatus.CANCELLED, actor_id, now, note=reason)

    def complete(
        self, existing: Appointment, actor_id: str, now: Optional[datetime] = None
    ) -> Appointment:
        return self.change_status(existing, AppointmentStatus.COMPLETED, actor_id, now)
