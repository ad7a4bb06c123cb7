from datetime import datetime

from scheduling.core.enums import ErrorKind
from scheduling.core.exceptions import (
    AppointmentNotFoundException,
    AppointmentStillFutureException,
    HorizonExceededException,
    InsufficientCancelLeadTimeException,
    InvalidPastScheduleException,
    InvalidStatusTransitionException,
    NotAuthorizedForTransitionException,
    OutsideBusinessHoursException,
    ServiceException,
    SlotConflictException,
    WeekendNotAllowedException,
)

START = datetime(2024, 2, 15, 14, 0)
NOW = datetime(2024, 2, 10, 9, 0)


def test_each_kind_maps_to_its_http_status():
    cases = [
        (InvalidPastScheduleException(START, NOW), 400, ErrorKind.INVALID_PAST_SCHEDULE),
        (HorizonExceededException(START, NOW, 3), 400, ErrorKind.HORIZON_EXCEEDED),
        (
            OutsideBusinessHoursException(START, START, "08:00", "18:00"),
            400,
            ErrorKind.OUTSIDE_BUSINESS_HOURS,
        ),
        (WeekendNotAllowedException(START), 400, ErrorKind.WEEKEND_NOT_ALLOWED),
        (InsufficientCancelLeadTimeException(2, 1.5), 422, ErrorKind.INSUFFICIENT_CANCEL_LEAD_TIME),
        (SlotConflictException(), 409, ErrorKind.SLOT_CONFLICT),
        (
            InvalidStatusTransitionException("PENDING", "COMPLETED"),
            422,
            ErrorKind.INVALID_STATUS_TRANSITION,
        ),
        (
            NotAuthorizedForTransitionException("u1", "client", "ACCEPTED"),
            403,
            ErrorKind.NOT_AUTHORIZED_FOR_TRANSITION,
        ),
        (AppointmentStillFutureException(START, NOW), 422, ErrorKind.APPOINTMENT_STILL_FUTURE),
        (AppointmentNotFoundException("a1"), 404, ErrorKind.APPOINTMENT_NOT_FOUND),
    ]

    for exc, status_code, kind in cases:
        http_exc = exc.to_http_exception()
        assert http_exc.status_code == status_code
        assert http_exc.detail["code"] == kind.value
        assert exc.kind is kind


def test_messages_carry_rule_parameters():
    assert "3 months" in HorizonExceededException(START, NOW, 3).message
    assert "08:00" in OutsideBusinessHoursException(START, START, "08:00", "18:00").message
    assert "2 hours" in InsufficientCancelLeadTimeException(2, 0.5).message


def test_not_authorized_message_names_role():
    exc = NotAuthorizedForTransitionException("u1", "client", "ACCEPTED")
    assert exc.message.startswith("Client")
    assert exc.details == {"actor_id": "u1", "actor_role": "client", "target_status": "ACCEPTED"}


def test_transition_reason_in_details():
    exc = InvalidStatusTransitionException("CANCELLED", "ACCEPTED", reason="terminal")
    assert exc.details["reason"] == "terminal"


def test_unknown_code_has_no_kind():
    exc = ServiceException("boom")
    assert exc.kind is None
    assert exc.to_http_exception().status_code == 500
