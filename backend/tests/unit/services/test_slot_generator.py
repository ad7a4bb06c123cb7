from datetime import date, datetime, time

import pytest

from scheduling.core.constants import (
    SLOT_REASON_OCCUPIED,
    SLOT_REASON_OUTSIDE_BUSINESS_HOURS,
    SLOT_REASON_PAST,
)
from scheduling.domain.interval import Interval
from scheduling.domain.rules import BusinessHours
from scheduling.services.slot_generator import SlotGenerator

DAY = date(2024, 2, 15)
HOURS = BusinessHours()


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime.combine(DAY, time(hour, minute))


@pytest.fixture
def generator() -> SlotGenerator:
    return SlotGenerator(step_minutes=30)


def _by_label(slots):
    return {slot.time_label: slot for slot in slots}


def test_grid_covers_business_hours_in_steps(generator):
    slots = generator.generate_slots(DAY, 30, HOURS, [])
    assert len(slots) == 20
    assert slots[0].start == _at(8)
    assert slots[-1].start == _at(17, 30)
    assert all(slot.available for slot in slots)


def test_occupied_slots(generator):
    intervals = [Interval(_at(14), _at(15), "apt")]
    slots = _by_label(generator.generate_slots(DAY, 30, HOURS, intervals))

    assert slots["13:30"].available
    assert slots["14:00"].reason == SLOT_REASON_OCCUPIED
    assert slots["14:30"].reason == SLOT_REASON_OCCUPIED
    assert slots["15:00"].available


def test_long_service_overlapping_next_appointment_is_occupied(generator):
    intervals = [Interval(_at(14), _at(15), "apt")]
    slots = _by_label(generator.generate_slots(DAY, 60, HOURS, intervals))
    assert slots["13:30"].reason == SLOT_REASON_OCCUPIED
    assert slots["13:00"].available


def test_slots_running_past_close_are_outside_business_hours(generator):
    slots = _by_label(generator.generate_slots(DAY, 90, HOURS, []))
    assert slots["16:30"].available
    assert slots["17:00"].reason == SLOT_REASON_OUTSIDE_BUSINESS_HOURS
    assert slots["17:30"].reason == SLOT_REASON_OUTSIDE_BUSINESS_HOURS


def test_start_at_close_is_outside_business_hours(generator):
    slot = generator.evaluate_slot(_at(18), 30, HOURS, [])
    assert not slot.available
    assert slot.reason == SLOT_REASON_OUTSIDE_BUSINESS_HOURS


def test_past_slots_marked_before_occupancy(generator):
    intervals = [Interval(_at(9), _at(10), "apt")]
    slots = _by_label(generator.generate_slots(DAY, 30, HOURS, intervals, now=_at(9, 15)))

    assert slots["08:00"].reason == SLOT_REASON_PAST
    assert slots["09:00"].reason == SLOT_REASON_PAST
    assert slots["09:30"].reason == SLOT_REASON_OCCUPIED
    assert slots["10:00"].available


def test_outside_hours_takes_precedence_over_past(generator):
    slots = _by_label(generator.generate_slots(DAY, 60, HOURS, [], now=_at(23)))
    assert slots["17:30"].reason == SLOT_REASON_OUTSIDE_BUSINESS_HOURS
    assert slots["08:00"].reason == SLOT_REASON_PAST


def test_custom_step():
    slots = SlotGenerator(step_minutes=60).generate_slots(DAY, 30, HOURS, [])
    assert [slot.time_label for slot in slots][:3] == ["08:00", "09:00", "10:00"]
    assert len(slots) == 10


def test_invalid_arguments(generator):
    with pytest.raises(ValueError):
        generator.generate_slots(DAY, 0, HOURS, [])
    with pytest.raises(ValueError):
        SlotGenerator(step_minutes=0)
