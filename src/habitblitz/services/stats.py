"""Roll-ups shown next to the contribution grid and progress bars."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ..models import Challenge
from .grid import ContributionGrid


@dataclass(frozen=True, slots=True)
class GridStatistics:
    """Summary of a contribution grid's eligible (past, post-creation) days."""

    completion_rate: int  # whole percent
    current_streak: int
    longest_streak: int
    total_completed: int


@dataclass(frozen=True, slots=True)
class ChallengeProgress:
    percent: int
    days_remaining: int
    streak: int


def _percent(part: int | float, whole: int | float) -> int:
    if whole <= 0:
        return 0
    value = Decimal(part) * Decimal(100) / Decimal(whole)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_statistics(grid: ContributionGrid) -> GridStatistics:
    """Fold the grid into completion rate, current/longest run and total.

    Future cells and cells before the habit's creation are ignored.
    """

    eligible = [
        cell for cell in grid.cells() if not cell.is_future and not cell.is_before_creation
    ]
    total_completed = sum(1 for cell in eligible if cell.completed)

    longest = 0
    run = 0
    for cell in eligible:
        if cell.completed:
            run += 1
            longest = max(longest, run)
        else:
            run = 0

    # Eligible cells are contiguous and end at today.
    current = 0
    for cell in reversed(eligible):
        if not cell.completed:
            break
        current += 1

    return GridStatistics(
        completion_rate=_percent(total_completed, len(eligible)),
        current_streak=current,
        longest_streak=longest,
        total_completed=total_completed,
    )


def habit_progress_percent(completed: int, weekly_goal: int) -> int:
    """This week's progress toward the goal, capped at 100."""

    if weekly_goal <= 0:
        return 0
    return min(_percent(completed, weekly_goal), 100)


def challenge_progress(challenge: Challenge) -> ChallengeProgress:
    """Progress of a blitz challenge measured by its consecutive-day streak."""

    total = max(challenge.total_days or 0, 1)
    streak = max(challenge.current_streak or 0, 0)
    if challenge.is_completed:
        streak = max(streak, total)
    return ChallengeProgress(
        percent=min(_percent(streak, total), 100),
        days_remaining=max(total - streak, 0),
        streak=streak,
    )


__all__ = [
    "ChallengeProgress",
    "GridStatistics",
    "challenge_progress",
    "compute_statistics",
    "habit_progress_percent",
]
