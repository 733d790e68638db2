"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Callable, Optional

from sqlmodel import Session, select

from ...errors import CompletionConflict, EntityNotFound
from ...models.habit import Habit
from ...services.dates import has_completion_on


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: Callable[[], Session], *, tz: Optional[tzinfo] = None):
        """Initialize with a session factory and the zone completions are keyed in."""
        self.session_factory = session_factory
        self.tz = tz

    def _locked_row(self, session: Session, habit_id: int, user_id: str) -> Habit:
        row = session.exec(
            select(Habit)
            .where(Habit.id == habit_id, Habit.user_id == user_id)
            .with_for_update()
        ).first()
        if row is None:
            raise EntityNotFound("habit", habit_id)
        return row

    def get_by_id(self, habit_id: int, *, user_id: str) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def get_by_original_challenge(self, challenge_id: int, *, user_id: str) -> Optional[Habit]:
        """Retrieve the habit produced by converting a challenge."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Habit).where(
                    Habit.original_challenge_id == challenge_id, Habit.user_id == user_id
                )
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: str) -> list[Habit]:
        """List a user's habits, newest first."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(Habit.created_at.desc(), Habit.id.desc())  # type: ignore[union-attr]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, habit: Habit, *, user_id: str) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            habit.completion_dates = list(habit.completion_dates or [])
            habit.updated_at = datetime.now()
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def update(self, habit: Habit, *, user_id: str) -> Habit:
        """Update an existing habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            habit.updated_at = datetime.now()
            merged = session.merge(habit)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, habit_id: int, *, user_id: str) -> None:
        """Delete a habit by ID."""
        with self.session_factory() as session:
            habit = session.exec(
                select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
            ).first()
            if habit:
                session.delete(habit)
                session.commit()

    # Completion operations
    def append_completion(
        self,
        habit_id: int,
        date_key: str,
        *,
        user_id: str,
        completed: int,
        current_streak: int,
        completed_at: datetime,
    ) -> Habit:
        """Add ``date_key`` and the recomputed counters in one transaction."""
        with self.session_factory() as session:
            row = self._locked_row(session, habit_id, user_id)
            if has_completion_on(row.completion_dates, date_key, self.tz):
                raise CompletionConflict("habit", habit_id, date_key)

            row.completion_dates = [*(row.completion_dates or []), date_key]
            row.completed = completed
            row.current_streak = current_streak
            row.last_completed_at = completed_at
            row.updated_at = completed_at
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row

    def update_counters(
        self, habit_id: int, *, user_id: str, completed: int, current_streak: int
    ) -> Habit:
        """Store recomputed derived counters without touching history."""
        with self.session_factory() as session:
            row = self._locked_row(session, habit_id, user_id)
            row.completed = completed
            row.current_streak = current_streak
            row.updated_at = datetime.now()
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row
