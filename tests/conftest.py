"""
Global test configuration for the rundown engine.

Every test gets a private in-memory SQLite database with the full schema, a
deterministic clock and a set of actors covering each role.
"""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rundown.domain import entities  # noqa: F401
from rundown.domain.actor import Actor
from rundown.engine.clock import SteppedClock
from rundown.infra import db as db_module
from rundown.infra.logging import configure_logging
from rundown.shared.types import UserRole
from rundown.usecases.bulletin_add import add_bulletin


@pytest.fixture(autouse=True, scope="session")
def _configure_logging():
    """Route structlog through stdlib logging so nothing is printed to stdout."""
    configure_logging("WARNING")


@pytest.fixture
def engine():
    test_engine = db_module.install_connect_hooks(
        create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
    )
    db_module.Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine, monkeypatch):
    """Point the module-level SessionLocal (and so the unit of work) at the test engine."""
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True, expire_on_commit=False)
    monkeypatch.setattr(db_module, "SessionLocal", factory)
    return factory


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def clock():
    return SteppedClock()


@pytest.fixture
def admin():
    return Actor(id="admin-1", role=UserRole.ADMIN)


@pytest.fixture
def producer():
    return Actor(id="producer-1", role=UserRole.PRODUCER)


@pytest.fixture
def editor():
    return Actor(id="editor-1", role=UserRole.EDITOR)


@pytest.fixture
def reporter():
    return Actor(id="reporter-1", role=UserRole.REPORTER)


@pytest.fixture
def bulletin(db, editor, clock):
    """An empty 30-minute bulletin; returns its contract dict."""
    return add_bulletin(
        db,
        actor=editor,
        title="6PM News",
        air_date="2025-03-01",
        start_time="18:00",
        planned_duration_secs=1800,
        clock=clock,
    )
