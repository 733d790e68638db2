"""Streak helpers for weekly habits and daily challenges.

Every function here is pure: results depend only on the completion records,
the goal, the creation instant and ``now``. Malformed records are skipped.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Iterable, Optional

from .dates import as_local_day, completion_days, week_start

DEFAULT_WALK_LIMIT = 104
_ONE_DAY = timedelta(days=1)
_ONE_WEEK = timedelta(days=7)


def count_in_week(days: Iterable[date], instant: datetime | date) -> int:
    """Number of completion days inside the Sunday–Saturday week of ``instant``."""

    start = week_start(instant)
    end = start + timedelta(days=6)
    return sum(1 for d in days if start <= d <= end)


def current_day_run(days: set[date], today: date) -> int:
    """Consecutive completed days ending at ``today`` (0 when today is missing)."""

    run = 0
    cursor = today
    while cursor in days:
        run += 1
        cursor -= _ONE_DAY
    return run


def longest_day_run(days: Iterable[date]) -> int:
    """Length of the longest run of consecutive calendar days."""

    longest = 0
    run = 0
    last_day: date | None = None
    for d in sorted(set(days)):
        if last_day is not None and d == last_day + _ONE_DAY:
            run += 1
        else:
            run = 1
        longest = max(longest, run)
        last_day = d
    return longest


def habit_week_streak(
    records: Iterable[Any] | None,
    weekly_goal: int,
    created_at: datetime | date | None,
    *,
    now: datetime,
    previous_streak: int = 0,
    walk_limit: int = DEFAULT_WALK_LIMIT,
    tz: Optional[tzinfo] = None,
) -> int:
    """Count consecutive Sunday–Saturday weeks meeting ``weekly_goal``.

    The current week contributes 1 once it meets the goal. Prior weeks are
    walked backwards from last week down to the creation week, stopping at
    the first week under goal. An in-progress current week never breaks
    the walked streak. ``previous_streak`` is only trusted when the walk
    ran out of ``walk_limit`` without finding a failed week, so the result
    stays derivable from the history whenever the history can decide it.
    """

    if weekly_goal < 1:
        return 0

    days = completion_days(records, since=created_at, tz=tz)
    today = as_local_day(now, tz)
    per_week = Counter(week_start(d) for d in days)

    this_week = week_start(today)
    current = per_week.get(this_week, 0)
    seed = 1 if current >= weekly_goal else 0

    creation_week = week_start(as_local_day(created_at, tz)) if created_at is not None else None
    walked = 0
    truncated = False
    cursor = this_week - _ONE_WEEK
    for _ in range(max(walk_limit, 0)):
        if creation_week is not None and cursor < creation_week:
            break
        if per_week.get(cursor, 0) < weekly_goal:
            break
        walked += 1
        cursor -= _ONE_WEEK
    else:
        truncated = walked > 0

    if truncated and 0 < current < weekly_goal and previous_streak > walked:
        return previous_streak
    return seed + walked


def habit_counters(
    records: Iterable[Any] | None,
    weekly_goal: int,
    created_at: datetime | date | None,
    *,
    now: datetime,
    previous_streak: int = 0,
    walk_limit: int = DEFAULT_WALK_LIMIT,
    tz: Optional[tzinfo] = None,
) -> tuple[int, int]:
    """Return the cached habit fields ``(completed, current_streak)``.

    ``completed`` is the uncapped number of completions this week.
    """

    days = completion_days(records, since=created_at, tz=tz)
    completed = count_in_week(days, as_local_day(now, tz))
    streak = habit_week_streak(
        records,
        weekly_goal,
        created_at,
        now=now,
        previous_streak=previous_streak,
        walk_limit=walk_limit,
        tz=tz,
    )
    return completed, streak


def challenge_day_streak(
    records: Iterable[Any] | None,
    *,
    now: datetime,
    created_at: datetime | date | None = None,
    tz: Optional[tzinfo] = None,
) -> int:
    """Consecutive completed days ending today; a missed day resets to 0."""

    days = completion_days(records, since=created_at, tz=tz)
    return current_day_run(days, as_local_day(now, tz))


def is_challenge_complete(
    records: Iterable[Any] | None,
    total_days: int,
    *,
    now: datetime,
    created_at: datetime | date | None = None,
    tz: Optional[tzinfo] = None,
) -> bool:
    """True iff ``total_days`` consecutive completed days end on or before today.

    The total number of completions is irrelevant; only an unbroken run counts.
    """

    if total_days < 1:
        return False
    today = as_local_day(now, tz)
    days = {d for d in completion_days(records, since=created_at, tz=tz) if d <= today}
    if len(days) < total_days:
        return False
    return longest_day_run(days) >= total_days


__all__ = [
    "DEFAULT_WALK_LIMIT",
    "challenge_day_streak",
    "count_in_week",
    "current_day_run",
    "habit_counters",
    "habit_week_streak",
    "is_challenge_complete",
    "longest_day_run",
]
