"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from sqlmodel import Session

from .config import BaseConfig
from .infra.database import create_db_engine, create_session_factory, init_database
from .infra.repositories import SQLModelChallengeRepository, SQLModelHabitRepository
from .models import Challenge, Habit
from .services.auth import AuthProvider, LocalAuthProvider
from .services.grid import ContributionGrid, habit_contribution_grid
from .services.legacy import ImportSummary, import_documents, load_export
from .services.recorder import CompletionRecorder
from .services.stats import GridStatistics, compute_statistics


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    # Configuration
    config: BaseConfig

    # Session factory
    session_factory: Callable[[], Session]

    # Repositories
    habit_repo: SQLModelHabitRepository
    challenge_repo: SQLModelChallengeRepository

    # Services
    recorder: CompletionRecorder
    auth: AuthProvider

    dev_mode: bool = False

    def require_user_id(self) -> str:
        """Return the signed-in user id or raise if nobody is signed in."""

        user_id = self.auth.current_user_id()
        if user_id is None:
            raise RuntimeError("User is not authenticated")
        return user_id

    # UI-facing operations, scoped to the signed-in user
    def complete_habit(self, habit_id: int, *, now: Optional[datetime] = None) -> Habit:
        return self.recorder.complete_habit(habit_id, user_id=self.require_user_id(), now=now)

    def complete_challenge_day(
        self, challenge_id: int, *, now: Optional[datetime] = None
    ) -> Challenge:
        return self.recorder.complete_challenge_day(
            challenge_id, user_id=self.require_user_id(), now=now
        )

    def contribution_grid(
        self, habit_id: int, *, now: Optional[datetime] = None
    ) -> ContributionGrid:
        return habit_contribution_grid(
            self.habit_repo,
            self.challenge_repo,
            habit_id,
            user_id=self.require_user_id(),
            now=now,
            config=self.config,
        )

    def habit_statistics(self, habit_id: int, *, now: Optional[datetime] = None) -> GridStatistics:
        return compute_statistics(self.contribution_grid(habit_id, now=now))

    def import_export(self, path: Path, *, now: Optional[datetime] = None) -> ImportSummary:
        """Import a JSON export for the signed-in user."""
        return import_documents(
            self.habit_repo,
            self.challenge_repo,
            load_export(path),
            user_id=self.require_user_id(),
            now=now,
            tz=self.config.local_zone(),
            total_days=self.config.CHALLENGE_TOTAL_DAYS,
        )


def create_app_context(
    config: Optional[BaseConfig] = None, *, auth: Optional[AuthProvider] = None
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    tz = config.local_zone()
    habit_repo = SQLModelHabitRepository(session_factory, tz=tz)
    challenge_repo = SQLModelChallengeRepository(session_factory, tz=tz)
    recorder = CompletionRecorder(habit_repo, challenge_repo, config=config)

    return AppContext(
        config=config,
        dev_mode=config.DEV_MODE,
        session_factory=session_factory,
        habit_repo=habit_repo,
        challenge_repo=challenge_repo,
        recorder=recorder,
        auth=auth or LocalAuthProvider(),
    )
