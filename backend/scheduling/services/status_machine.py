# backend/scheduling/services/status_machine.py
"""
Status Transition Machine for appointments.

    PENDING  -> ACCEPTED   professional
    PENDING  -> REJECTED   professional
    PENDING  -> CANCELLED  client or professional
    ACCEPTED -> COMPLETED  professional, only once the appointment has ended
    ACCEPTED -> CANCELLED  client or professional

REJECTED, CANCELLED and COMPLETED are terminal. The cancellation lead time
is a business rule enforced by the engine on top of this table.
"""

from datetime import datetime
import logging
from typing import Dict, FrozenSet, Mapping, Optional

from ..core.enums import ActorRole, AppointmentStatus
from ..core.exceptions import (
    AppointmentStillFutureException,
    InvalidStatusTransitionException,
    NotAuthorizedForTransitionException,
)
from ..domain.appointment import Appointment
from .base import BaseService

logger = logging.getLogger(__name__)

_PROFESSIONAL_ONLY = frozenset({ActorRole.PROFESSIONAL})
_EITHER_PARTY = frozenset({ActorRole.CLIENT, ActorRole.PROFESSIONAL})

TRANSITIONS: Mapping[AppointmentStatus, Mapping[AppointmentStatus, FrozenSet[ActorRole]]] = {
    AppointmentStatus.PENDING: {
        AppointmentStatus.ACCEPTED: _PROFESSIONAL_ONLY,
        AppointmentStatus.REJECTED: _PROFESSIONAL_ONLY,
        AppointmentStatus.CANCELLED: _EITHER_PARTY,
    },
    AppointmentStatus.ACCEPTED: {
        AppointmentStatus.COMPLETED: _PROFESSIONAL_ONLY,
        AppointmentStatus.CANCELLED: _EITHER_PARTY,
    },
    AppointmentStatus.REJECTED: {},
    AppointmentStatus.CANCELLED: {},
    AppointmentStatus.COMPLETED: {},
}

_STATUS_TIMESTAMP_FIELD: Dict[AppointmentStatus, str] = {
    AppointmentStatus.ACCEPTED: "accepted_at",
    AppointmentStatus.REJECTED: "rejected_at",
    AppointmentStatus.CANCELLED: "cancelled_at",
    AppointmentStatus.COMPLETED: "completed_at",
}


def resolve_actor_role(appointment: Appointment, actor_id: str) -> ActorRole:
    """Role ``actor_id`` plays on ``appointment``."""
    if actor_id == appointment.professional_id:
        return ActorRole.PROFESSIONAL
    if actor_id == appointment.client_id:
        return ActorRole.CLIENT
    return ActorRole.OUTSIDER


def allowed_targets(status: AppointmentStatus) -> FrozenSet[AppointmentStatus]:
    return frozenset(TRANSITIONS[AppointmentStatus(status)])


class StatusTransitionMachine(BaseService):
    """Validates and applies appointment status transitions."""

    def check_legal(self, current: AppointmentStatus, target: AppointmentStatus) -> None:
        if current.is_terminal:
            raise InvalidStatusTransitionException(
                current.value, target.value, reason=f"{current.value} is a terminal status"
            )
        if target not in TRANSITIONS[current]:
            raise InvalidStatusTransitionException(current.value, target.value)

    def check_actor(
        self, role: ActorRole, actor_id: str, current: AppointmentStatus, target: AppointmentStatus
    ) -> None:
        if role not in TRANSITIONS[current][target]:
            raise NotAuthorizedForTransitionException(actor_id, role.value, target.value)

    def check_timing(self, appointment: Appointment, target: AppointmentStatus, now: datetime) -> None:
        if target == AppointmentStatus.COMPLETED and appointment.scheduled_end > now:
            raise AppointmentStillFutureException(appointment.scheduled_end, now)

    def validate(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        actor_id: str,
        now: datetime,
    ) -> ActorRole:
        """
        Check that ``actor_id`` may move ``appointment`` to ``target`` at ``now``.

        Raises:
            InvalidStatusTransitionException: Terminal source or no edge in the table
            NotAuthorizedForTransitionException: Actor's role is not allowed on that edge
            AppointmentStillFutureException: Completing before the appointment ended

        Returns:
            The role resolved for the actor
        """
        target = AppointmentStatus(target)
        current = appointment.status
        self.check_legal(current, target)
        role = resolve_actor_role(appointment, actor_id)
        self.check_actor(role, actor_id, current, target)
        self.check_timing(appointment, target, now)
        return role

    def apply(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        actor_id: str,
        now: datetime,
        *,
        note: Optional[str] = None,
    ) -> Appointment:
        """Return ``appointment`` moved to ``target``; call ``validate`` first."""
        target = AppointmentStatus(target)
        changes: Dict[str, object] = {"status": target, _STATUS_TIMESTAMP_FIELD[target]: now}

        if target == AppointmentStatus.CANCELLED:
            changes["cancelled_by_id"] = actor_id
            if note:
                changes["cancellation_reason"] = note
        elif note:
            changes["professional_notes"] = note

        self.logger.info(
            f"Appointment {appointment.id} {appointment.status.value} -> {target.value} "
            f"by {actor_id}"
        )
        return appointment.with_changes(now, **changes)

    def transition(
        self,
        appointment: Appointment,
        target: AppointmentStatus,
        actor_id: str,
        now: datetime,
        *,
        note: Optional[str] = None,
    ) -> Appointment:
        self.validate(appointment, target, actor_id, now)
        return self.apply(appointment, target, actor_id, now, note=note)
