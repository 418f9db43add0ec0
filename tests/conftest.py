"""Pytest configuration and shared fixtures for Smart Tasbih tests.

This module provides database fixtures, a controllable clock, test data factories
and a Flask client, so services and routes are tested without touching the real
app database.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from sqlmodel import create_engine

from tasbih import create_app
from tasbih.config import TestConfig
from tasbih.context import AppContext
from tasbih.infra.database import create_session_factory, init_database
from tasbih.models import CalculationJob, CountingSession, Goal, UserProfile
from tasbih.services.metrics import MetricsAggregator

USER_ID = "user-1"


class FakeClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now

    def set(self, value: datetime) -> datetime:
        self.now = value
        return self.now


# =============================================================================
# Configuration & Clock
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Clock pinned to 2025-03-10 12:00 UTC."""

    return FakeClock(datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "tasbih-test.db"


@pytest.fixture
def test_config(monkeypatch, tmp_path, db_path) -> TestConfig:
    """Test configuration pointed at a per-test SQLite file and data dir."""

    monkeypatch.setenv("TASBIH_DATA_DIR", str(tmp_path / "instance"))
    monkeypatch.setenv("TASBIH_DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.delenv("TASBIH_WEBHOOK_SECRET", raising=False)
    return TestConfig()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine(db_path):
    """Create an isolated SQLite database for each test.

    The Flask app fixture opens the same file, so rows written here are visible
    to route tests.

    Yields:
        Engine: SQLModel engine connected to a temporary database file
    """
    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    init_database(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Factory returning transactional session scopes, as the app uses them."""

    return create_session_factory(db_engine)


@pytest.fixture
def metrics(clock) -> MetricsAggregator:
    return MetricsAggregator(clock=clock)


@pytest.fixture
def app_context(test_config, db_engine, session_factory, metrics, clock) -> AppContext:
    """Application context over the isolated test database."""

    return AppContext(
        config=test_config,
        engine=db_engine,
        session_factory=session_factory,
        metrics=metrics,
        clock=clock,
    )


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def profile_factory(session_factory):
    """Factory for creating user profiles.

    Returns:
        Callable: Function that creates and persists UserProfile instances
    """

    def _create_profile(user_id: str = USER_ID, timezone_name: str = "UTC", **fields) -> UserProfile:
        with session_factory() as session:
            profile = UserProfile(user_id=user_id, timezone=timezone_name, **fields)
            session.add(profile)
            session.flush()
            session.refresh(profile)
        return profile

    return _create_profile


@pytest.fixture
def goal_factory(session_factory, clock):
    """Factory for creating goals.

    Returns:
        Callable: Function that creates and persists Goal instances
    """

    def _create_goal(
        user_id: str = USER_ID,
        target_count: int = 33,
        progress: int = 0,
        category: str = "azkar",
        goal_type: str = "recite",
        prayer_segment: str = "none",
        item_id: str | None = None,
        status: str = "active",
    ) -> Goal:
        with session_factory() as session:
            goal = Goal(
                user_id=user_id,
                category=category,
                item_id=item_id,
                goal_type=goal_type,
                target_count=target_count,
                progress=progress,
                status=status,
                prayer_segment=prayer_segment,
                created_at=clock(),
                updated_at=clock(),
            )
            session.add(goal)
            session.flush()
            session.refresh(goal)
        return goal

    return _create_goal


@pytest.fixture
def counting_session_factory(app_context):
    """Factory that opens a counting session through the Session Manager.

    Returns:
        Callable: Function that starts a session and returns it
    """

    def _start(user_id: str = USER_ID, goal_id: int | None = None, prayer_segment: str | None = None) -> CountingSession:
        with app_context.unit_of_work() as services:
            return services.sessions.start(user_id, goal_id, prayer_segment)

    return _start


@pytest.fixture
def job_factory(session_factory, clock):
    """Factory for creating calculation jobs."""

    def _create_job(job_id: str = "job-1", status: str = "pending", user_id: str | None = USER_ID) -> CalculationJob:
        with session_factory() as session:
            job = CalculationJob(
                job_id=job_id,
                user_id=user_id,
                status=status,
                created_at=clock(),
                updated_at=clock(),
            )
            session.add(job)
            session.flush()
            session.refresh(job)
        return job

    return _create_job


@pytest.fixture
def tap(app_context):
    """Run one tap in its own transaction, like a single API request."""

    def _tap(session_id: int, delta: int = 1, user_id: str = USER_ID, **kwargs):
        with app_context.unit_of_work() as services:
            return services.counter.tap(user_id, session_id, delta, **kwargs)

    return _tap


# =============================================================================
# Flask Fixtures
# =============================================================================


@pytest.fixture
def app(test_config, clock):
    """Flask app bound to the per-test database and the fake clock."""

    flask_app = create_app(config=test_config, clock=clock)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    return {"X-User-Id": USER_ID}
