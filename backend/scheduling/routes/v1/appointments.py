# backend/scheduling/routes/v1/appointments.py
"""
Appointment routes - API v1

Versioned appointment endpoints under /api/v1/appointments.
All business logic delegated to AppointmentService.

Endpoints:
    GET /availability - Slots of a day for a professional's service
    GET /upcoming - Future PENDING/ACCEPTED appointments of a user
    GET /history - Past or completed appointments of a user
    GET /stats - Appointment counts per status for the caller
    POST / - Book an appointment
    GET /{appointment_id} - Appointment details (client or professional only)
    POST /{appointment_id}/reschedule - Move an appointment
    POST /{appointment_id}/status - Accept, reject, cancel or complete
"""

from datetime import date, datetime
import logging
from typing import Literal, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status

from ...api.dependencies import get_actor_id, get_appointment_service
from ...core.constants import DEFAULT_QUERY_LIMIT, MAX_QUERY_LIMIT
from ...core.enums import ActorRole
from ...core.exceptions import DomainException
from ...domain.appointment import AppointmentRequest
from ...schemas.appointment import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatsResponse,
    AppointmentStatusUpdate,
    AvailabilityResponse,
    SlotResponse,
)
from ...services.appointment_service import AppointmentService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["appointments-v1"])

ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.get("/availability", response_model=AvailabilityResponse)
def get_availability(
    professional_id: str = Query(..., description="Professional ULID"),
    service_id: str = Query(..., description="Service ULID"),
    target_date: date = Query(..., alias="date", description="Day to inspect"),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AvailabilityResponse:
    """List the day's candidate start times and whether each is bookable."""
    try:
        slots = appointment_service.check_availability(professional_id, service_id, target_date)
    except DomainException as e:
        handle_domain_exception(e)

    slot_responses = [SlotResponse.from_slot(slot) for slot in slots]
    return AvailabilityResponse(
        professional_id=professional_id,
        service_id=service_id,
        target_date=target_date,
        slots=slot_responses,
        available_count=sum(1 for slot in slots if slot.available),
    )


@router.get("/upcoming", response_model=AppointmentListResponse)
def get_upcoming_appointments(
    role: Literal["client", "professional"] = Query(...),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    actor_id: str = Depends(get_actor_id),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentListResponse:
    """Future PENDING/ACCEPTED appointments of the caller."""
    try:
        appointments = appointment_service.get_upcoming_appointments(
            actor_id, ActorRole(role), limit=limit
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AppointmentListResponse.from_appointments(appointments)


@router.get("/history", response_model=AppointmentListResponse)
def get_appointment_history(
    role: Literal["client", "professional"] = Query(...),
    limit: int = Query(DEFAULT_QUERY_LIMIT, ge=1, le=MAX_QUERY_LIMIT),
    actor_id: str = Depends(get_actor_id),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentListResponse:
    """Appointments of the caller that already started or were completed."""
    try:
        appointments = appointment_service.get_appointment_history(
            actor_id, ActorRole(role), limit=limit
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AppointmentListResponse.from_appointments(appointments)


@router.get("/stats", response_model=AppointmentStatsResponse)
def get_appointment_stats(
    role: Literal["client", "professional"] = Query(...),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    actor_id: str = Depends(get_actor_id),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentStatsResponse:
    """Counts per status and completion rate of the caller's appointments."""
    try:
        stats = appointment_service.get_party_stats(
            actor_id, ActorRole(role), date_from=date_from, date_to=date_to
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AppointmentStatsResponse(**stats)


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Service or professional not found"}, 409: {"description": "Time conflict"}},
)
def create_appointment(
    payload: AppointmentCreate = Body(...),
    actor_id: str = Depends(get_actor_id),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    """Book an appointment for the caller; it starts PENDING."""
    request = AppointmentRequest(
        client_id=actor_id,
        professional_id=payload.professional_id,
        service_id=payload.service_id,
        scheduled_start=payload.scheduled_start,
        location=payload.location,
        client_notes=payload.client_notes,
    )
    try:
        appointment = appointment_service.create_appointment(request)
    except DomainException as e:
        handle_domain_exception(e)
    return AppointmentResponse.from_appointment(appointment)


# ============================================================================
# SECTION 2: Dynamic routes (with path parameters)
# ============================================================================


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    responses={403: {"description": "Not a party"}, 404: {"description": "Appointment not found"}},
)
def get_appointment(
    appointment_id: str = Path(..., description="Appointment ULID", pattern=ULID_PATH_PATTERN),
    actor_id: str = Depends(get_actor_id),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    try:
        appointment = appointment_service.get_appointment(appointment_id, actor_id)
    except DomainException as e:
        handle_domain_exception(e)
    return AppointmentResponse.from_appointment(appointment)


@router.post(
    "/{appointment_id}/reschedule",
    response_model=AppointmentResponse,
    responses={404: {"description": "Appointment not found"}, 409: {"description": "Time conflict"}},
)
def reschedule_appointment(
    appointment_id: str = Path(..., description="Appointment ULID", pattern=ULID_PATH_PATTERN),
    payload: AppointmentReschedule = Body(...),
    actor_id: str = Depends(get_actor_id),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    """Move the appointment, keeping its duration and status."""
    try:
        appointment = appointment_service.reschedule_appointment(
            appointment_id, payload.scheduled_start, actor_id
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AppointmentResponse.from_appointment(appointment)


@router.post(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    responses={
        403: {"description": "Actor not allowed on this transition"},
        404: {"description": "Appointment not found"},
        422: {"description": "Illegal transition"},
    },
)
def change_appointment_status(
    appointment_id: str = Path(..., description="Appointment ULID", pattern=ULID_PATH_PATTERN),
    payload: AppointmentStatusUpdate = Body(...),
    actor_id: str = Depends(get_actor_id),
    appointment_service: AppointmentService = Depends(get_appointment_service),
) -> AppointmentResponse:
    """Accept, reject, cancel or complete an appointment."""
    try:
        appointment = appointment_service.change_appointment_status(
            appointment_id, payload.status, actor_id, note=payload.note
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AppointmentResponse.from_appointment(appointment)
