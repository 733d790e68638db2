"""Turn a finished blitz challenge into a recurring daily habit."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

from ..domain.repositories import ChallengeRepository, HabitRepository
from ..errors import ConversionFailure, EntityNotFound
from ..logging_config import get_logger
from ..models import Habit
from .dates import to_local_naive
from .streaks import habit_counters

logger = get_logger(__name__)

DEFAULT_CATEGORY = "Health & Fitness"
DEFAULT_COLOR = "purple"


def convert_challenge_to_habit(
    challenge_id: int,
    *,
    user_id: str,
    habit_repo: HabitRepository,
    challenge_repo: ChallengeRepository,
    weekly_goal: int = 7,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> int:
    """Create the follow-up habit for ``challenge_id`` and archive the challenge.

    Safe to retry: a habit already linked to the challenge is reused.
    Returns the habit id. Every failure surfaces as ConversionFailure.
    """

    now = now or datetime.now()
    try:
        challenge = challenge_repo.get_by_id(challenge_id, user_id=user_id)
        if challenge is None:
            raise EntityNotFound("challenge", challenge_id)

        habit = habit_repo.get_by_original_challenge(challenge_id, user_id=user_id)
        if habit is None:
            history = list(challenge.completion_dates or [])
            completed, streak = habit_counters(
                history, weekly_goal, challenge.created_at, now=now, tz=tz
            )
            habit = habit_repo.create(
                Habit(
                    user_id=user_id,
                    name=challenge.name,
                    icon=challenge.icon,
                    category=challenge.category or DEFAULT_CATEGORY,
                    color=challenge.color or DEFAULT_COLOR,
                    weekly_goal=weekly_goal,
                    completion_dates=history,
                    completed=completed,
                    current_streak=streak,
                    created_at=challenge.created_at,
                    converted_from_challenge=True,
                    original_challenge_id=challenge_id,
                ),
                user_id=user_id,
            )
            logger.info(
                "Converted challenge to habit",
                extra={"challenge_id": challenge_id, "habit_id": habit.id},
            )

        if not challenge.is_archived:
            challenge_repo.set_archived(
                challenge_id, user_id=user_id, archived_at=to_local_naive(now, tz)
            )
    except Exception as exc:
        raise ConversionFailure(challenge_id, str(exc)) from exc

    return int(habit.id)


__all__ = ["convert_challenge_to_habit"]
