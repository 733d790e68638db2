"""Tests for grid statistics and progress helpers."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from habitblitz.models import Challenge, Habit
from habitblitz.services.grid import generate_contribution_grid
from habitblitz.services.stats import (
    challenge_progress,
    compute_statistics,
    habit_progress_percent,
)
from tests.conftest import USER_ID

NOW = datetime(2024, 1, 10, 12, 0)


def grid_for(completion_dates, *, now=NOW):
    habit = Habit(
        id=1,
        user_id=USER_ID,
        name="Stretch",
        weekly_goal=3,
        completion_dates=list(completion_dates),
        created_at=datetime(2024, 1, 1, 9, 0),
    )
    return generate_contribution_grid(habit, [], now)


class TestComputeStatistics:
    def test_counts_only_past_days_since_creation(self):
        grid = grid_for(
            ["2023-12-31", "2024-01-01", "2024-01-02", "2024-01-03", "2024-01-05",
             "2024-01-09", "2024-01-10", "2024-01-20"]
        )

        stats = compute_statistics(grid)

        assert stats.total_completed == 6
        assert stats.completion_rate == 60  # 6 of 10 eligible days
        assert stats.longest_streak == 3
        assert stats.current_streak == 2

    def test_current_streak_is_zero_when_today_missing(self):
        stats = compute_statistics(grid_for(["2024-01-08", "2024-01-09"]))

        assert stats.current_streak == 0
        assert stats.longest_streak == 2

    def test_empty_history(self):
        stats = compute_statistics(grid_for([]))

        assert stats.total_completed == 0
        assert stats.completion_rate == 0
        assert stats.current_streak == 0
        assert stats.longest_streak == 0

    def test_rate_rounds_half_up(self):
        # Created on 2024-01-01; eight eligible days through 2024-01-08, one completed.
        stats = compute_statistics(grid_for(["2024-01-04"], now=datetime(2024, 1, 8)))

        assert stats.completion_rate == 13

    def test_statistics_are_repeatable(self):
        grid = grid_for(["2024-01-02", "2024-01-03"])

        assert compute_statistics(grid) == compute_statistics(grid)


class TestProgressHelpers:
    @pytest.mark.parametrize(
        "completed, goal, expected",
        [(0, 3, 0), (1, 3, 33), (2, 3, 67), (3, 3, 100), (5, 3, 100), (2, 0, 0)],
    )
    def test_habit_progress_percent(self, completed, goal, expected):
        assert habit_progress_percent(completed, goal) == expected

    def test_challenge_progress_in_flight(self):
        challenge = Challenge(user_id=USER_ID, name="Blitz", total_days=21, current_streak=7)

        progress = challenge_progress(challenge)

        assert progress.percent == 33
        assert progress.days_remaining == 14
        assert progress.streak == 7

    def test_completed_challenge_is_full_even_after_streak_drops(self):
        challenge = Challenge(
            user_id=USER_ID, name="Blitz", total_days=21, current_streak=0, is_completed=True
        )

        progress = challenge_progress(challenge)

        assert progress.percent == 100
        assert progress.days_remaining == 0


def test_grid_today_is_included_in_window():
    grid = grid_for(["2024-01-10"])

    assert grid.cell_for(date(2024, 1, 10)).completed
    assert compute_statistics(grid).current_streak == 1
