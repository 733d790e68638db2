"""Tests for contribution grid generation and related-challenge matching."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from habitblitz.errors import EntityNotFound
from habitblitz.models import Challenge, Habit
from habitblitz.services.grid import (
    find_related_challenges,
    generate_contribution_grid,
    habit_contribution_grid,
    is_related_challenge,
)
from tests.conftest import USER_ID, day_keys

NOW = datetime(2024, 1, 10, 12, 0)  # Wednesday


def make_habit(**overrides) -> Habit:
    values = dict(
        id=1,
        user_id=USER_ID,
        name="💪 Exercise",
        weekly_goal=3,
        completion_dates=[],
        created_at=datetime(2024, 1, 1, 9, 0),
    )
    values.update(overrides)
    return Habit(**values)


def make_challenge(**overrides) -> Challenge:
    values = dict(
        id=10,
        user_id=USER_ID,
        name="⚡ Cold Shower Blitz",
        total_days=21,
        completion_dates=[],
        created_at=datetime(2023, 6, 1, 9, 0),
    )
    values.update(overrides)
    return Challenge(**values)


class TestGridShape:
    def test_starts_on_creation_week_sunday(self):
        grid = generate_contribution_grid(make_habit(), [], NOW)

        assert grid.start == date(2023, 12, 31)
        assert grid.start.weekday() == 6
        assert all(len(week) == 7 for week in grid.weeks)

    def test_covers_one_year_past_today(self):
        grid = generate_contribution_grid(make_habit(), [], NOW)

        assert grid.end >= date(2025, 1, 10)
        assert grid.end.weekday() == 5  # Saturday
        assert grid.cell_for(date(2025, 1, 10)).is_future

    def test_includes_last_day_when_span_is_whole_weeks(self):
        # 2023-12-31 to 2025-01-12 is exactly 54 weeks.
        grid = generate_contribution_grid(make_habit(), [], datetime(2024, 1, 12, 9))

        assert grid.cell_for(date(2025, 1, 12)) is not None
        assert grid.end == date(2025, 1, 18)

    def test_flags_today_future_and_before_creation(self):
        grid = generate_contribution_grid(make_habit(), [], NOW)

        assert grid.cell_for(date(2023, 12, 31)).is_before_creation
        assert not grid.cell_for(date(2024, 1, 1)).is_before_creation
        today = grid.cell_for(date(2024, 1, 10))
        assert today.is_today and not today.is_future
        assert grid.cell_for(date(2024, 1, 11)).is_future
        assert sum(1 for cell in grid.cells() if cell.is_today) == 1

    def test_week_cap_drops_oldest_weeks_and_keeps_today(self):
        habit = make_habit(created_at=datetime(2020, 1, 1))

        grid = generate_contribution_grid(habit, [], NOW, max_weeks=104)

        assert len(grid.weeks) == 104
        assert grid.cell_for(date(2024, 1, 10)).is_today
        assert grid.start > date(2020, 1, 1)

    def test_missing_creation_date_falls_back_to_a_year_back(self):
        habit = make_habit(created_at=None)

        grid = generate_contribution_grid(habit, [], NOW, max_weeks=200)

        assert grid.start == date(2023, 1, 8)
        assert grid.cell_for(date(2024, 1, 10)).is_today

    def test_leap_day_today(self):
        grid = generate_contribution_grid(
            make_habit(created_at=datetime(2024, 2, 1)), [], datetime(2024, 2, 29, 8)
        )

        assert grid.end >= date(2025, 2, 28)

    def test_cell_lookup_outside_grid(self):
        grid = generate_contribution_grid(make_habit(), [], NOW)

        assert grid.cell_for(date(2020, 1, 1)) is None


class TestGridCells:
    def test_completion_before_creation_is_not_marked(self):
        habit = make_habit(completion_dates=["2023-12-31", "2024-01-02"])

        grid = generate_contribution_grid(habit, [], NOW)

        assert not grid.cell_for(date(2023, 12, 31)).completed
        assert grid.cell_for(date(2023, 12, 31)).intensity == 0
        assert grid.cell_for(date(2024, 1, 2)).completed

    @pytest.mark.parametrize(
        "keys, expected",
        [
            (["2024-01-08"], 2),
            (["2024-01-08", "2024-01-09"], 3),
            (["2024-01-07", "2024-01-08", "2024-01-09"], 4),
            (day_keys(date(2024, 1, 7), 6), 4),
        ],
    )
    def test_intensity_scales_with_week_progress(self, keys, expected):
        grid = generate_contribution_grid(make_habit(completion_dates=keys), [], NOW)

        assert grid.cell_for(date(2024, 1, 8)).intensity == expected

    def test_incomplete_days_have_zero_intensity(self):
        grid = generate_contribution_grid(make_habit(completion_dates=["2024-01-08"]), [], NOW)

        assert grid.cell_for(date(2024, 1, 9)).intensity == 0
        assert not grid.cell_for(date(2024, 1, 9)).completed

    def test_challenge_days_get_full_intensity(self):
        habit = make_habit(completion_dates=["2024-01-08"])
        challenge = make_challenge(completion_dates=["2024-01-02"])

        grid = generate_contribution_grid(habit, [challenge], NOW)

        merged = grid.cell_for(date(2024, 1, 2))
        assert merged.completed
        assert merged.intensity == 4
        assert merged.is_challenge_day
        assert not grid.cell_for(date(2024, 1, 8)).is_challenge_day

    def test_malformed_goal_uses_fallback(self):
        habit = make_habit(weekly_goal=0, completion_dates=["2024-01-08"])

        grid = generate_contribution_grid(habit, [], NOW)

        assert grid.cell_for(date(2024, 1, 8)).intensity == 2

    def test_unparseable_records_are_ignored(self):
        habit = make_habit(completion_dates=["junk", None, "2024-01-09"])

        grid = generate_contribution_grid(habit, [], NOW)

        assert sum(1 for cell in grid.cells() if cell.completed) == 1

    def test_generation_is_repeatable(self):
        habit = make_habit(completion_dates=day_keys(date(2024, 1, 1), 5))
        challenge = make_challenge(completion_dates=["2024-01-08"])

        first = generate_contribution_grid(habit, [challenge], NOW)
        second = generate_contribution_grid(habit, [challenge], NOW)

        assert first == second
        assert habit.completion_dates == day_keys(date(2024, 1, 1), 5)


class TestRelatedChallenges:
    """The matcher is a heuristic; these tests pin its rules, not ground truth."""

    def test_conversion_link_matches(self):
        habit = make_habit(original_challenge_id=10)

        assert is_related_challenge(habit, make_challenge(id=10, name="Something else"))

    def test_name_fragment_matches(self):
        challenge = make_challenge(name="Exercise Blitz")

        assert is_related_challenge(make_habit(), challenge)

    def test_single_word_name_matches_whole(self):
        habit = make_habit(name="Meditate")

        assert is_related_challenge(habit, make_challenge(name="🧘 Meditate daily"))

    def test_creation_time_proximity_matches(self):
        challenge = make_challenge(name="Read", created_at=datetime(2024, 1, 20))

        assert is_related_challenge(make_habit(), challenge)

    def test_unrelated_challenge(self):
        challenge = make_challenge(name="Read", created_at=datetime(2024, 3, 15))

        assert not is_related_challenge(make_habit(), challenge)

    def test_find_related_filters(self):
        near = make_challenge(id=11, name="Read", created_at=datetime(2023, 12, 20))
        far = make_challenge(id=12, name="Read", created_at=datetime(2022, 1, 1))

        assert find_related_challenges(make_habit(), [near, far]) == [near]


class TestHabitContributionGrid:
    def test_loads_archived_related_challenges(
        self, habit_repo, challenge_repo, habit_factory, challenge_factory, config
    ):
        source = challenge_factory(
            name="💪 Exercise Blitz", completion_dates=["2024-01-02"], is_archived=True
        )
        habit = habit_factory(original_challenge_id=source.id, completion_dates=["2024-01-08"])

        grid = habit_contribution_grid(
            habit_repo, challenge_repo, habit.id, user_id=USER_ID, now=NOW, config=config
        )

        assert grid.cell_for(date(2024, 1, 2)).is_challenge_day
        assert grid.cell_for(date(2024, 1, 8)).completed

    def test_unknown_habit(self, habit_repo, challenge_repo, config):
        with pytest.raises(EntityNotFound):
            habit_contribution_grid(
                habit_repo, challenge_repo, 77, user_id=USER_ID, now=NOW, config=config
            )
