from datetime import datetime

import pytest

from scheduling.core.enums import AppointmentStatus
from scheduling.core.exceptions import (
    AppointmentNotFoundException,
    ProfessionalNotFoundException,
    ServiceNotFoundException,
    SlotConflictException,
)
from scheduling.repositories.calendar_store import InMemoryCalendarStore, InMemoryServiceCatalog
from tests.factories.appointment_builders import (
    OTHER_PROFESSIONAL_ID,
    PROFESSIONAL_ID,
    SERVICE_30_ID,
    make_appointment,
)

DAY_START = datetime(2024, 2, 15, 0, 0)
DAY_END = datetime(2024, 2, 16, 0, 0)


class TestCalendarStore:
    def test_fetch_returns_only_holding_statuses(self):
        pending = make_appointment(datetime(2024, 2, 15, 9, 0), status=AppointmentStatus.PENDING)
        accepted = make_appointment(datetime(2024, 2, 15, 11, 0))
        cancelled = make_appointment(datetime(2024, 2, 15, 13, 0), status=AppointmentStatus.CANCELLED)
        completed = make_appointment(datetime(2024, 2, 15, 15, 0), status=AppointmentStatus.COMPLETED)
        store = InMemoryCalendarStore([pending, accepted, cancelled, completed])

        ids = {i.appointment_id for i in store.fetch_calendar_intervals(PROFESSIONAL_ID, DAY_START, DAY_END)}

        assert ids == {pending.id, accepted.id}

    def test_fetch_is_scoped_to_professional_and_window(self):
        mine = make_appointment(datetime(2024, 2, 15, 9, 0))
        theirs = make_appointment(datetime(2024, 2, 15, 9, 0), professional_id=OTHER_PROFESSIONAL_ID)
        next_day = make_appointment(datetime(2024, 2, 16, 9, 0))
        store = InMemoryCalendarStore([mine, theirs, next_day])

        intervals = store.fetch_calendar_intervals(PROFESSIONAL_ID, DAY_START, DAY_END)

        assert [i.appointment_id for i in intervals] == [mine.id]

    def test_persist_refuses_overlap(self):
        store = InMemoryCalendarStore()
        store.persist(make_appointment(datetime(2024, 2, 15, 14, 0)))

        with pytest.raises(SlotConflictException) as exc_info:
            store.persist(make_appointment(datetime(2024, 2, 15, 14, 30)))
        assert exc_info.value.details["source"] == "store"
        assert len(store.all()) == 1

    def test_persist_allows_overlap_with_released_interval(self):
        store = InMemoryCalendarStore(
            [make_appointment(datetime(2024, 2, 15, 14, 0), status=AppointmentStatus.REJECTED)]
        )
        store.persist(make_appointment(datetime(2024, 2, 15, 14, 0)))
        assert store.count_by_status(AppointmentStatus.ACCEPTED) == 1

    def test_update_unknown_appointment(self):
        with pytest.raises(AppointmentNotFoundException):
            InMemoryCalendarStore().update(make_appointment(datetime(2024, 2, 15, 14, 0)))

    def test_get_or_raise(self):
        appointment = make_appointment(datetime(2024, 2, 15, 14, 0))
        store = InMemoryCalendarStore([appointment])
        assert store.get_or_raise(appointment.id) is appointment
        with pytest.raises(AppointmentNotFoundException):
            store.get_or_raise("missing")

    def test_locked_yields_store(self):
        store = InMemoryCalendarStore()
        with store.locked() as locked:
            assert locked is store


class TestServiceCatalog:
    def test_resolves_duration(self):
        catalog = InMemoryServiceCatalog()
        catalog.add_service(SERVICE_30_ID, PROFESSIONAL_ID, 30)
        assert catalog.resolve_service_duration(SERVICE_30_ID, PROFESSIONAL_ID) == 30

    def test_inactive_professional(self):
        catalog = InMemoryServiceCatalog()
        catalog.add_professional(PROFESSIONAL_ID, is_active=False)
        catalog.add_service(SERVICE_30_ID, PROFESSIONAL_ID, 30)
        with pytest.raises(ProfessionalNotFoundException):
            catalog.resolve_service_duration(SERVICE_30_ID, PROFESSIONAL_ID)

    def test_inactive_service(self):
        catalog = InMemoryServiceCatalog()
        catalog.add_service(SERVICE_30_ID, PROFESSIONAL_ID, 30, is_active=False)
        with pytest.raises(ServiceNotFoundException):
            catalog.resolve_service_duration(SERVICE_30_ID, PROFESSIONAL_ID)

    def test_rejects_non_positive_duration(self):
        with pytest.raises(ValueError):
            InMemoryServiceCatalog().add_service(SERVICE_30_ID, PROFESSIONAL_ID, 0)
