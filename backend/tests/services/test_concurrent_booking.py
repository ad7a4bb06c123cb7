"""Two sessions booking the same slot on a file-backed SQLite database."""

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from scheduling.core.clock import FixedClock
from scheduling.core.exceptions import RepositoryException
from scheduling.database import Base, configure_sqlite_transactions
from scheduling.domain.appointment import AppointmentRequest
import scheduling.models  # noqa: F401
from scheduling.repositories.service_catalog_repository import ServiceCatalogRepository
from scheduling.services.appointment_service import AppointmentService
from tests.factories.appointment_builders import (
    CLIENT_ID,
    NOW,
    OTHER_CLIENT_ID,
    PROFESSIONAL_ID,
    SERVICE_60_ID,
)

SLOT = datetime(2024, 2, 15, 10, 0)


@pytest.fixture
def file_engine(tmp_path):
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'scheduling.db'}",
        future=True,
        connect_args={"check_same_thread": False, "timeout": 0.1},
    )
    configure_sqlite_transactions(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def make_session(file_engine):
    factory = sessionmaker(bind=file_engine, autoflush=False, expire_on_commit=False, future=True)
    seed = factory()
    catalog = ServiceCatalogRepository(seed)
    catalog.add_professional("Ana", professional_id=PROFESSIONAL_ID)
    catalog.add_service(PROFESSIONAL_ID, 60, "Coloring", service_id=SERVICE_60_ID)
    seed.commit()
    seed.close()

    sessions = []

    def _make():
        session = factory()
        sessions.append(session)
        return session

    yield _make
    for session in sessions:
        session.close()


def _request(client_id: str) -> AppointmentRequest:
    return AppointmentRequest(
        client_id=client_id,
        professional_id=PROFESSIONAL_ID,
        service_id=SERVICE_60_ID,
        scheduled_start=SLOT,
    )


def test_second_writer_cannot_book_while_first_holds_the_calendar(make_session):
    first = AppointmentService(make_session(), clock=FixedClock(NOW))
    second = AppointmentService(make_session(), clock=FixedClock(NOW))
    outcome = {}

    real_fetch = first.repository.fetch_calendar_intervals

    def fetch_then_interleave(*args, **kwargs):
        intervals = real_fetch(*args, **kwargs)
        try:
            outcome["second"] = second.create_appointment(_request(OTHER_CLIENT_ID))
        except RepositoryException as exc:
            outcome["error"] = exc
        return intervals

    first.repository.fetch_calendar_intervals = fetch_then_interleave

    booked = first.create_appointment(_request(CLIENT_ID))

    assert "second" not in outcome
    assert "locked" in str(outcome["error"])
    assert booked.scheduled_start == SLOT

    reader = AppointmentService(make_session(), clock=FixedClock(NOW))
    assert reader.get_stats(professional_id=PROFESSIONAL_ID)["total"] == 1


def test_next_session_reads_the_committed_booking(make_session):
    first = AppointmentService(make_session(), clock=FixedClock(NOW))
    first.create_appointment(_request(CLIENT_ID))

    second = AppointmentService(make_session(), clock=FixedClock(NOW))
    intervals = second.repository.fetch_calendar_intervals(
        PROFESSIONAL_ID, SLOT, datetime(2024, 2, 15, 11, 0)
    )
    assert len(intervals) == 1
