"""Apply "mark complete" actions to habits and challenges.

The recorder is the only writer of completion history. Each call:

1. claims the entity (a second concurrent call for the same id fails fast
   with OperationInProgress),
2. loads a fresh snapshot and validates it,
3. rejects a second completion on the same local calendar day,
4. appends today's DateKey and recomputes every cached counter from the
   full history before persisting both in one storage call.

A challenge that reaches ``total_days`` consecutive days is handed to a
background conversion job once its completion has been committed.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from threading import Lock
from typing import Any, Callable, Iterator, Optional

from ..config import BaseConfig
from ..domain.repositories import ChallengeRepository, HabitRepository
from ..errors import DuplicateCompletion, EntityNotFound, OperationInProgress, ValidationError
from ..logging_config import get_logger
from ..models import Challenge, Habit
from . import jobs
from .conversion import convert_challenge_to_habit
from .dates import has_completion_on, local_date_key, to_local_naive
from .streaks import (
    DEFAULT_WALK_LIMIT,
    challenge_day_streak,
    habit_counters,
    is_challenge_complete,
)

logger = get_logger(__name__)

Dispatcher = Callable[..., Any]

CONVERSION_JOB = "challenge-conversion"


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


def validate_habit(habit: Habit) -> None:
    """Reject habits whose data cannot drive streak computation."""

    if not _is_positive_int(habit.weekly_goal):
        raise ValidationError(f"weekly_goal must be a positive integer, got {habit.weekly_goal!r}")
    if habit.created_at is None:
        raise ValidationError("habit is missing created_at")
    if not isinstance(habit.completion_dates, list):
        raise ValidationError("completion_dates must be a list")


def validate_challenge(challenge: Challenge) -> None:
    """Reject malformed challenges and ones that no longer accept completions."""

    if not _is_positive_int(challenge.total_days):
        raise ValidationError(
            f"total_days must be a positive integer, got {challenge.total_days!r}"
        )
    if challenge.created_at is None:
        raise ValidationError("challenge is missing created_at")
    if not isinstance(challenge.completion_dates, list):
        raise ValidationError("completion_dates must be a list")
    if challenge.is_archived:
        raise ValidationError(f"Challenge {challenge.id} is archived")
    if challenge.is_completed:
        raise ValidationError(f"Challenge {challenge.id} is already completed")


class CompletionRecorder:
    """Serialises completions per entity and keeps cached counters honest."""

    def __init__(
        self,
        habit_repo: HabitRepository,
        challenge_repo: ChallengeRepository,
        *,
        config: Optional[BaseConfig] = None,
        dispatcher: Optional[Dispatcher] = None,
    ) -> None:
        self.habit_repo = habit_repo
        self.challenge_repo = challenge_repo
        self.config = config or BaseConfig()
        self.tz = self.config.local_zone()
        self._dispatch = dispatcher or jobs.enqueue
        self._inflight: set[tuple[str, Any]] = set()
        self._lock = Lock()

    @property
    def walk_limit(self) -> int:
        return getattr(self.config, "STREAK_WALK_LIMIT", DEFAULT_WALK_LIMIT)

    def _now(self) -> datetime:
        return datetime.now(self.tz) if self.tz is not None else datetime.now()

    @contextmanager
    def _exclusive(self, entity: str, entity_id: Any) -> Iterator[None]:
        """Hold the per-entity slot; never queue behind another caller."""

        key = (entity, entity_id)
        with self._lock:
            if key in self._inflight:
                logger.info(
                    "Rejected concurrent completion",
                    extra={"entity": entity, "entity_id": entity_id},
                )
                raise OperationInProgress(entity, entity_id)
            self._inflight.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._inflight.discard(key)

    def is_busy(self, entity: str, entity_id: Any) -> bool:
        """True while a completion for the entity is running."""

        with self._lock:
            return (entity, entity_id) in self._inflight

    def complete_habit(
        self, habit_id: int, *, user_id: str, now: Optional[datetime] = None
    ) -> Habit:
        """Record today's completion for a habit and return the stored row.

        Raises OperationInProgress, EntityNotFound, ValidationError or
        DuplicateCompletion; nothing is written in those cases.
        """

        now = now or self._now()
        with self._exclusive("habit", habit_id):
            habit = self.habit_repo.get_by_id(habit_id, user_id=user_id)
            if habit is None:
                raise EntityNotFound("habit", habit_id)
            validate_habit(habit)

            date_key = local_date_key(now, self.tz)
            if has_completion_on(habit.completion_dates, date_key, self.tz):
                raise DuplicateCompletion("habit", habit_id, date_key)

            history = [*habit.completion_dates, date_key]
            completed, streak = habit_counters(
                history,
                habit.weekly_goal,
                habit.created_at,
                now=now,
                previous_streak=habit.current_streak or 0,
                walk_limit=self.walk_limit,
                tz=self.tz,
            )
            updated = self.habit_repo.append_completion(
                habit_id,
                date_key,
                user_id=user_id,
                completed=completed,
                current_streak=streak,
                completed_at=to_local_naive(now, self.tz),
            )

        logger.info(
            "Habit completed",
            extra={
                "habit_id": habit_id,
                "date_key": date_key,
                "completed": completed,
                "current_streak": streak,
            },
        )
        return updated

    def complete_challenge_day(
        self, challenge_id: int, *, user_id: str, now: Optional[datetime] = None
    ) -> Challenge:
        """Record today's completion for a challenge and return the stored row.

        When this completion finishes the challenge, conversion into a habit
        is dispatched after the write; its outcome never affects this call.
        """

        now = now or self._now()
        with self._exclusive("challenge", challenge_id):
            challenge = self.challenge_repo.get_by_id(challenge_id, user_id=user_id)
            if challenge is None:
                raise EntityNotFound("challenge", challenge_id)
            validate_challenge(challenge)

            date_key = local_date_key(now, self.tz)
            if has_completion_on(challenge.completion_dates, date_key, self.tz):
                raise DuplicateCompletion("challenge", challenge_id, date_key)

            history = [*challenge.completion_dates, date_key]
            streak = challenge_day_streak(
                history, now=now, created_at=challenge.created_at, tz=self.tz
            )
            finished = is_challenge_complete(
                history,
                challenge.total_days,
                now=now,
                created_at=challenge.created_at,
                tz=self.tz,
            )
            updated = self.challenge_repo.append_completion(
                challenge_id,
                date_key,
                user_id=user_id,
                current_streak=streak,
                is_completed=finished,
                completed_at=to_local_naive(now, self.tz),
            )

        logger.info(
            "Challenge day completed",
            extra={
                "challenge_id": challenge_id,
                "date_key": date_key,
                "current_streak": streak,
                "is_completed": finished,
            },
        )
        if finished:
            self._schedule_conversion(challenge_id, user_id=user_id, now=now)
        return updated

    def refresh_habit_counters(self, *, user_id: str, now: Optional[datetime] = None) -> int:
        """Recompute ``completed``/``current_streak`` for all of a user's habits.

        Run at week rollover so stale counters from last week drop to the new
        week's values. Each habit is re-read and written while holding its
        completion slot; a habit with a completion in flight is skipped since
        that completion rewrites its counters anyway. Returns the number of
        habits whose counters changed.
        """

        now = now or self._now()
        changed = 0
        for listed in self.habit_repo.list_all(user_id=user_id):
            if listed.id is None:
                continue
            try:
                with self._exclusive("habit", listed.id):
                    if self._refresh_habit(listed.id, user_id=user_id, now=now):
                        changed += 1
            except OperationInProgress:
                continue

        logger.info("Refreshed habit counters", extra={"user_id": user_id, "changed": changed})
        return changed

    def _refresh_habit(self, habit_id: int, *, user_id: str, now: datetime) -> bool:
        habit = self.habit_repo.get_by_id(habit_id, user_id=user_id)
        if habit is None:
            return False
        if not _is_positive_int(habit.weekly_goal):
            logger.warning("Skipping malformed habit", extra={"habit_id": habit_id})
            return False
        completed, streak = habit_counters(
            habit.completion_dates,
            habit.weekly_goal,
            habit.created_at,
            now=now,
            previous_streak=habit.current_streak or 0,
            walk_limit=self.walk_limit,
            tz=self.tz,
        )
        if (completed, streak) == (habit.completed, habit.current_streak):
            return False
        self.habit_repo.update_counters(
            habit_id, user_id=user_id, completed=completed, current_streak=streak
        )
        return True

    def _schedule_conversion(self, challenge_id: int, *, user_id: str, now: datetime) -> None:
        """Hand the finished challenge to a detached conversion job."""

        try:
            self._dispatch(
                CONVERSION_JOB,
                convert_challenge_to_habit,
                metadata={"challenge_id": challenge_id, "user_id": user_id},
                max_attempts=self.config.CONVERSION_MAX_ATTEMPTS,
                retry_delay=self.config.CONVERSION_RETRY_DELAY,
                challenge_id=challenge_id,
                user_id=user_id,
                habit_repo=self.habit_repo,
                challenge_repo=self.challenge_repo,
                weekly_goal=self.config.CONVERTED_HABIT_WEEKLY_GOAL,
                now=now,
                tz=self.tz,
            )
        except Exception:
            # The completion is already committed; a lost conversion is only logged.
            logger.exception(
                "Could not dispatch challenge conversion",
                extra={"challenge_id": challenge_id},
            )


__all__ = [
    "CONVERSION_JOB",
    "CompletionRecorder",
    "validate_challenge",
    "validate_habit",
]
