"""Demo history generator for trying the grid and streak views."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, tzinfo
from typing import Optional

from ..domain.repositories import HabitRepository
from ..logging_config import get_logger
from ..models import Habit
from .dates import as_local_day, local_date_key, to_local_naive, week_start
from .streaks import habit_counters

logger = get_logger(__name__)

# Offsets from Sunday; every pattern meets a weekly goal of 3.
WEEK_PATTERNS = {
    3: (1, 3, 5),  # Mon, Wed, Fri
    4: (0, 2, 4, 6),  # Sun, Tue, Thu, Sat
    5: (1, 2, 3, 5, 6),  # Mon, Tue, Wed, Fri, Sat
}


def exercise_history(
    *,
    now: datetime,
    weeks: int = 42,
    rng: Optional[random.Random] = None,
    tz: Optional[tzinfo] = None,
) -> list[str]:
    """DateKeys for ``weeks`` complete weeks ending before the current week."""

    rng = rng or random.Random()
    current_week = week_start(as_local_day(now, tz))
    first_week = current_week - timedelta(weeks=weeks)
    history: list[str] = []
    for index in range(weeks):
        sunday = first_week + timedelta(weeks=index)
        roll = rng.random()
        workouts = 3 if roll < 0.5 else (4 if rng.random() < 0.7 else 5)
        history.extend(
            local_date_key(sunday + timedelta(days=offset)) for offset in WEEK_PATTERNS[workouts]
        )
    return history


def generate_exercise_habit(
    habit_repo: HabitRepository,
    *,
    user_id: str,
    now: Optional[datetime] = None,
    weeks: int = 42,
    rng: Optional[random.Random] = None,
    tz: Optional[tzinfo] = None,
) -> Habit:
    """Create an "Exercise" habit (goal 3/week) with ``weeks`` of unbroken history."""

    if weeks < 1:
        raise ValueError("weeks must be >= 1")
    now = now or datetime.now()
    history = exercise_history(now=now, weeks=weeks, rng=rng, tz=tz)
    created_at = datetime.combine(
        week_start(as_local_day(now, tz)) - timedelta(weeks=weeks), datetime.min.time()
    )
    completed, streak = habit_counters(history, 3, created_at, now=now, tz=tz)
    habit = habit_repo.create(
        Habit(
            user_id=user_id,
            name="💪 Exercise",
            icon="💪",
            category="Health & Fitness",
            color="emerald",
            weekly_goal=3,
            completion_dates=history,
            completed=completed,
            current_streak=streak,
            created_at=created_at,
            updated_at=to_local_naive(now, tz),
        ),
        user_id=user_id,
    )
    logger.info(
        "Seeded exercise habit",
        extra={"habit_id": habit.id, "completions": len(history), "current_streak": streak},
    )
    return habit


__all__ = ["WEEK_PATTERNS", "exercise_history", "generate_exercise_habit"]
