"""Habit repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.habit import Habit


class HabitRepository(Protocol):
    """Repository for managing habit entities."""

    def get_by_id(self, habit_id: int, *, user_id: str) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def get_by_original_challenge(self, challenge_id: int, *, user_id: str) -> Optional[Habit]:
        """Retrieve the habit produced by converting a challenge."""
        ...

    def list_all(self, *, user_id: str) -> list[Habit]:
        """List a user's habits, newest first."""
        ...

    def create(self, habit: Habit, *, user_id: str) -> Habit:
        """Create a new habit."""
        ...

    def update(self, habit: Habit, *, user_id: str) -> Habit:
        """Update an existing habit."""
        ...

    def delete(self, habit_id: int, *, user_id: str) -> None:
        """Delete a habit by ID."""
        ...

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
        """Atomically add one calendar day and store the recomputed counters.

        Raises CompletionConflict when the day is already stored.
        """
        ...

    def update_counters(
        self, habit_id: int, *, user_id: str, completed: int, current_streak: int
    ) -> Habit:
        """Store recomputed derived counters without touching history."""
        ...
