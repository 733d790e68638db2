"""Contribution grid: a habit's history laid out as Sunday-first calendar weeks."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Iterable, Iterator, Optional, Sequence

from ..config import BaseConfig
from ..domain.repositories import ChallengeRepository, HabitRepository
from ..errors import EntityNotFound
from ..models import Challenge, Habit
from .dates import as_local_day, completion_days, to_local_naive, week_start

MAX_INTENSITY = 4
DEFAULT_MAX_WEEKS = 104
DEFAULT_RELATED_WINDOW_DAYS = 30
# Used when a habit carries no usable weekly goal.
FALLBACK_WEEKLY_GOAL = 3


@dataclass(frozen=True, slots=True)
class GridCell:
    """One calendar day of the grid."""

    day: date
    completed: bool
    intensity: int
    is_today: bool
    is_future: bool
    is_before_creation: bool
    is_challenge_day: bool = False


@dataclass(frozen=True, slots=True)
class ContributionGrid:
    """Weeks of seven cells each, oldest first, Sunday first within a week."""

    weeks: tuple[tuple[GridCell, ...], ...]
    start: date
    end: date
    today: date

    def cells(self) -> Iterator[GridCell]:
        for week in self.weeks:
            yield from week

    def cell_for(self, day: date) -> Optional[GridCell]:
        offset = (day - self.start).days
        if offset < 0 or offset >= len(self.weeks) * 7:
            return None
        return self.weeks[offset // 7][offset % 7]


def _name_fragment(name: str) -> str:
    # "💪 Exercise" -> "exercise"; single-word names match whole.
    lowered = (name or "").lower()
    parts = lowered.split(" ")
    return parts[1] if len(parts) > 1 and parts[1] else lowered.strip()


def is_related_challenge(
    habit: Habit,
    challenge: Challenge,
    *,
    window_days: int = DEFAULT_RELATED_WINDOW_DAYS,
    tz: Optional[tzinfo] = None,
) -> bool:
    """Best-effort guess whether ``challenge`` belongs to ``habit``'s history.

    Matches on the conversion link, on a name fragment, or on creation
    dates within ``window_days`` of each other. This is approximate: both
    false positives and false negatives are expected.
    """

    if habit.original_challenge_id is not None and habit.original_challenge_id == challenge.id:
        return True

    fragment = _name_fragment(habit.name)
    if fragment and fragment in (challenge.name or "").lower():
        return True

    if habit.created_at is not None and challenge.created_at is not None:
        gap = to_local_naive(challenge.created_at, tz) - to_local_naive(habit.created_at, tz)
        if abs(gap) < timedelta(days=window_days):
            return True
    return False


def find_related_challenges(
    habit: Habit,
    challenges: Iterable[Challenge],
    *,
    window_days: int = DEFAULT_RELATED_WINDOW_DAYS,
    tz: Optional[tzinfo] = None,
) -> list[Challenge]:
    """Filter ``challenges`` down to the ones that look related to ``habit``."""

    return [
        challenge
        for challenge in challenges
        if is_related_challenge(habit, challenge, window_days=window_days, tz=tz)
    ]


def _one_year_after(day: date) -> date:
    try:
        return day.replace(year=day.year + 1)
    except ValueError:  # Feb 29
        return day.replace(year=day.year + 1, day=28)


def _intensity(week_count: int, weekly_goal: int) -> int:
    ratio = min(week_count / weekly_goal, 1.0)
    return max(1, math.ceil(ratio * MAX_INTENSITY))


def generate_contribution_grid(
    habit: Habit,
    related_challenges: Sequence[Challenge] | Iterable[Challenge],
    now: datetime,
    *,
    max_weeks: int = DEFAULT_MAX_WEEKS,
    tz: Optional[tzinfo] = None,
) -> ContributionGrid:
    """Build the grid from the habit's creation week through one year past ``now``.

    When more than ``max_weeks`` weeks would be needed, the oldest weeks are
    dropped so the grid always covers today. Completions merged in from
    related challenges get full intensity; other completed days scale with
    how much of the weekly goal their week reached (1–4).
    """

    today = as_local_day(now, tz)
    if habit.created_at is not None:
        created_on = as_local_day(habit.created_at, tz)
    else:
        created_on = today - timedelta(days=365)

    start = week_start(created_on)
    end = _one_year_after(today)
    weeks_needed = max(1, math.ceil(((end - start).days + 1) / 7))
    max_weeks = max(1, max_weeks)
    if weeks_needed > max_weeks:
        start += timedelta(weeks=weeks_needed - max_weeks)
        weeks_needed = max_weeks

    challenge_days: set[date] = set()
    for challenge in related_challenges:
        challenge_days |= completion_days(challenge.completion_dates, tz=tz)
    all_days = completion_days(habit.completion_dates, tz=tz) | challenge_days
    per_week = Counter(week_start(d) for d in all_days if d >= created_on)

    goal: Any = habit.weekly_goal
    if isinstance(goal, bool) or not isinstance(goal, int) or goal < 1:
        goal = FALLBACK_WEEKLY_GOAL

    weeks: list[tuple[GridCell, ...]] = []
    for week in range(weeks_needed):
        cells = []
        for offset in range(7):
            day = start + timedelta(days=week * 7 + offset)
            before_creation = day < created_on
            completed = day in all_days and not before_creation
            challenge_day = completed and day in challenge_days
            if not completed:
                intensity = 0
            elif challenge_day:
                intensity = MAX_INTENSITY
            else:
                intensity = _intensity(per_week[week_start(day)], goal)
            cells.append(
                GridCell(
                    day=day,
                    completed=completed,
                    intensity=intensity,
                    is_today=day == today,
                    is_future=day > today,
                    is_before_creation=before_creation,
                    is_challenge_day=challenge_day,
                )
            )
        weeks.append(tuple(cells))

    return ContributionGrid(
        weeks=tuple(weeks),
        start=start,
        end=start + timedelta(days=weeks_needed * 7 - 1),
        today=today,
    )


def habit_contribution_grid(
    habit_repo: HabitRepository,
    challenge_repo: ChallengeRepository,
    habit_id: int,
    *,
    user_id: str,
    now: Optional[datetime] = None,
    config: Optional[BaseConfig] = None,
) -> ContributionGrid:
    """Load a habit plus its related challenges (archived included) and grid it."""

    config = config or BaseConfig()
    tz = config.local_zone()
    habit = habit_repo.get_by_id(habit_id, user_id=user_id)
    if habit is None:
        raise EntityNotFound("habit", habit_id)

    related = find_related_challenges(
        habit,
        challenge_repo.list_all(user_id=user_id, include_archived=True),
        window_days=config.RELATED_CHALLENGE_WINDOW_DAYS,
        tz=tz,
    )
    now = now or (datetime.now(tz) if tz is not None else datetime.now())
    return generate_contribution_grid(
        habit, related, now, max_weeks=config.GRID_MAX_WEEKS, tz=tz
    )


__all__ = [
    "ContributionGrid",
    "GridCell",
    "find_related_challenges",
    "generate_contribution_grid",
    "habit_contribution_grid",
    "is_related_challenge",
]
