"""Pytest configuration and shared fixtures for HabitBlitz tests.

Provides an isolated SQLite database per test, repository instances, and
factories for habits and challenges, so recorder/grid logic can be tested
without touching the real app database.
"""

from __future__ import annotations

import tempfile
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Iterable

import pytest
from sqlmodel import Session, SQLModel, create_engine

from habitblitz.config import BaseConfig
from habitblitz.infra.repositories import SQLModelChallengeRepository, SQLModelHabitRepository
from habitblitz.models import Challenge, Habit
from habitblitz.services import jobs
from habitblitz.services.recorder import CompletionRecorder

USER_ID = "user-123"


# =============================================================================
# Helpers
# =============================================================================


def day_keys(start: date, count: int, *, step: int = 1) -> list[str]:
    """DateKeys for ``count`` days starting at ``start``."""
    return [(start + timedelta(days=i * step)).isoformat() for i in range(count)]


def at(day: date, hour: int = 12) -> datetime:
    """Naive local datetime on ``day`` (noon by default)."""
    return datetime(day.year, day.month, day.day, hour)


# =============================================================================
# Configuration / jobs
# =============================================================================


@pytest.fixture
def config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> BaseConfig:
    """Config pointing at a temporary data dir with the system time zone."""

    monkeypatch.setenv("HABITBLITZ_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("HABITBLITZ_DATABASE_URL", f"sqlite:///{tmp_path / 'app.db'}")
    monkeypatch.delenv("HABITBLITZ_TIMEZONE", raising=False)
    monkeypatch.setenv("HABITBLITZ_CONVERSION_RETRY_DELAY", "0")
    return BaseConfig()


@pytest.fixture(autouse=True)
def sync_jobs():
    """Run background jobs inline so tests can observe their outcome."""

    jobs.set_async_execution(False)
    jobs.clear_jobs()
    yield
    jobs.set_async_execution(True)
    jobs.clear_jobs()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the repositories' ``Callable[[], ContextManager[Session]]``."""

    @contextmanager
    def factory():
        session = Session(db_engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return factory


@pytest.fixture
def habit_repo(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


@pytest.fixture
def challenge_repo(session_factory) -> SQLModelChallengeRepository:
    return SQLModelChallengeRepository(session_factory)


@pytest.fixture
def recorder(habit_repo, challenge_repo, config) -> CompletionRecorder:
    return CompletionRecorder(habit_repo, challenge_repo, config=config)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory(habit_repo):
    """Factory for creating persisted habits."""

    def _create_habit(
        name: str = "💪 Exercise",
        weekly_goal: int = 3,
        completion_dates: Iterable = (),
        created_at: datetime = datetime(2024, 1, 1, 9, 0),
        current_streak: int = 0,
        completed: int = 0,
        **extra,
    ) -> Habit:
        habit = Habit(
            user_id=USER_ID,
            name=name,
            weekly_goal=weekly_goal,
            completion_dates=list(completion_dates),
            created_at=created_at,
            current_streak=current_streak,
            completed=completed,
            **extra,
        )
        return habit_repo.create(habit, user_id=USER_ID)

    return _create_habit


@pytest.fixture
def challenge_factory(challenge_repo):
    """Factory for creating persisted challenges."""

    def _create_challenge(
        name: str = "⚡ Cold Shower Blitz",
        total_days: int = 21,
        completion_dates: Iterable = (),
        created_at: datetime = datetime(2024, 1, 1, 9, 0),
        **extra,
    ) -> Challenge:
        challenge = Challenge(
            user_id=USER_ID,
            name=name,
            total_days=total_days,
            completion_dates=list(completion_dates),
            created_at=created_at,
            **extra,
        )
        return challenge_repo.create(challenge, user_id=USER_ID)

    return _create_challenge
