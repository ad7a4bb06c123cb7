"""
Database engine, session factory, and metadata shared by the reference
persistence adapter.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .core.config import settings

logger = logging.getLogger(__name__)


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"future": True, "echo": settings.database_echo}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in db_url:
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update({"pool_size": 5, "max_overflow": 5, "pool_pre_ping": True})
    return kwargs


def configure_sqlite_transactions(target: Engine) -> Engine:
    """
    Make every SQLite transaction take the write lock when it begins.

    pysqlite defers BEGIN until the first write, so two sessions could both
    read a free calendar before either inserts. BEGIN IMMEDIATE makes the
    second writer wait (or time out) until the first commits, which gives
    SQLite the same serialization the row lock gives PostgreSQL.
    """

    @event.listens_for(target, "connect")
    def disable_pysqlite_begin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return target


def build_engine(db_url: str) -> Engine:
    created = create_engine(db_url, **_build_engine_kwargs(db_url))

    @event.listens_for(created, "connect")
    def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info["connect_time"] = datetime.now()
        logger.debug("Database connection established")

    if db_url.startswith("sqlite"):
        configure_sqlite_transactions(created)

    return created


engine: Engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(target: Engine | None = None) -> None:
    """Create all tables on ``target`` (defaults to the configured engine)."""
    from . import models  # noqa: F401  registers the mappers

    Base.metadata.create_all(bind=target or engine)
