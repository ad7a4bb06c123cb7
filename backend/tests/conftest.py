"""Shared fixtures for the scheduling test suite."""

from __future__ import annotations

from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from scheduling.core.clock import FixedClock
from scheduling.database import Base
from scheduling.domain.rules import BusinessRules
import scheduling.models  # noqa: F401
from scheduling.repositories.calendar_store import InMemoryCalendarStore, InMemoryServiceCatalog
from scheduling.services.scheduling_engine import SchedulingEngine
from tests.factories.appointment_builders import (
    NOW,
    OTHER_PROFESSIONAL_ID,
    PROFESSIONAL_ID,
    SERVICE_30_ID,
    SERVICE_60_ID,
)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def rules() -> BusinessRules:
    return BusinessRules()


@pytest.fixture
def calendar_store() -> InMemoryCalendarStore:
    return InMemoryCalendarStore()


@pytest.fixture
def catalog() -> InMemoryServiceCatalog:
    catalog = InMemoryServiceCatalog()
    catalog.add_service(SERVICE_30_ID, PROFESSIONAL_ID, 30, name="Haircut")
    catalog.add_service(SERVICE_60_ID, PROFESSIONAL_ID, 60, name="Coloring")
    catalog.add_professional(OTHER_PROFESSIONAL_ID)
    return catalog


@pytest.fixture
def engine(calendar_store, catalog, rules, clock) -> SchedulingEngine:
    return SchedulingEngine(calendar_store, catalog, rules=rules, clock=clock)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> sessionmaker:
    return sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False, future=True)


@pytest.fixture
def db(session_factory) -> Iterator[Session]:
    """Session on a fresh in-memory database; the service layer commits freely."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
