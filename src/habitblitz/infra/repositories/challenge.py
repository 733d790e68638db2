"""SQLModel implementation of Challenge repository."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Callable, Optional

from sqlmodel import Session, select

from ...errors import CompletionConflict, EntityNotFound
from ...models.challenge import Challenge
from ...services.dates import has_completion_on


class SQLModelChallengeRepository:
    """SQLModel-based challenge repository implementation."""

    def __init__(self, session_factory: Callable[[], Session], *, tz: Optional[tzinfo] = None):
        self.session_factory = session_factory
        self.tz = tz

    def _locked_row(self, session: Session, challenge_id: int, user_id: str) -> Challenge:
        row = session.exec(
            select(Challenge)
            .where(Challenge.id == challenge_id, Challenge.user_id == user_id)
            .with_for_update()
        ).first()
        if row is None:
            raise EntityNotFound("challenge", challenge_id)
        return row

    def get_by_id(self, challenge_id: int, *, user_id: str) -> Optional[Challenge]:
        """Retrieve a challenge by ID (archived ones included)."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Challenge).where(
                    Challenge.id == challenge_id, Challenge.user_id == user_id
                )
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: str, include_archived: bool = False) -> list[Challenge]:
        """List a user's challenges, newest first."""
        with self.session_factory() as session:
            statement = (
                select(Challenge)
                .where(Challenge.user_id == user_id)
                .order_by(Challenge.created_at.desc(), Challenge.id.desc())  # type: ignore[union-attr]
            )
            if not include_archived:
                statement = statement.where(Challenge.is_archived == False)  # noqa: E712

            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def create(self, challenge: Challenge, *, user_id: str) -> Challenge:
        """Create a new challenge."""
        with self.session_factory() as session:
            challenge.user_id = user_id
            challenge.completion_dates = list(challenge.completion_dates or [])
            challenge.updated_at = datetime.now()
            session.add(challenge)
            session.commit()
            session.refresh(challenge)
            session.expunge(challenge)
            return challenge

    def update(self, challenge: Challenge, *, user_id: str) -> Challenge:
        """Update an existing challenge."""
        with self.session_factory() as session:
            challenge.user_id = user_id
            challenge.updated_at = datetime.now()
            merged = session.merge(challenge)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def delete(self, challenge_id: int, *, user_id: str) -> None:
        """Delete a challenge by ID."""
        with self.session_factory() as session:
            challenge = session.exec(
                select(Challenge).where(
                    Challenge.id == challenge_id, Challenge.user_id == user_id
                )
            ).first()
            if challenge:
                session.delete(challenge)
                session.commit()

    def append_completion(
        self,
        challenge_id: int,
        date_key: str,
        *,
        user_id: str,
        current_streak: int,
        is_completed: bool,
        completed_at: datetime,
    ) -> Challenge:
        """Add ``date_key`` and the derived lifecycle state in one transaction."""
        with self.session_factory() as session:
            row = self._locked_row(session, challenge_id, user_id)
            if has_completion_on(row.completion_dates, date_key, self.tz):
                raise CompletionConflict("challenge", challenge_id, date_key)

            row.completion_dates = [*(row.completion_dates or []), date_key]
            row.current_streak = current_streak
            row.is_completed = is_completed
            if is_completed:
                row.is_active = False
            row.last_completed_at = completed_at
            row.updated_at = completed_at
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row

    def set_archived(
        self, challenge_id: int, *, user_id: str, archived_at: Optional[datetime] = None
    ) -> Challenge:
        """Mark a challenge archived; archived challenges are also inactive."""
        with self.session_factory() as session:
            row = self._locked_row(session, challenge_id, user_id)
            stamp = archived_at or datetime.now()
            row.is_archived = True
            row.is_active = False
            row.archived_at = stamp
            row.updated_at = stamp
            session.add(row)
            session.commit()
            session.refresh(row)
            session.expunge(row)
            return row
