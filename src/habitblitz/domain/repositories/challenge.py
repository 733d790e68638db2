"""Challenge repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ...models.challenge import Challenge


class ChallengeRepository(Protocol):
    """Repository for managing blitz challenges."""

    def get_by_id(self, challenge_id: int, *, user_id: str) -> Optional[Challenge]:
        """Retrieve a challenge by ID (archived ones included)."""
        ...

    def list_all(self, *, user_id: str, include_archived: bool = False) -> list[Challenge]:
        """List a user's challenges, newest first."""
        ...

    def create(self, challenge: Challenge, *, user_id: str) -> Challenge:
        """Create a new challenge."""
        ...

    def update(self, challenge: Challenge, *, user_id: str) -> Challenge:
        """Update an existing challenge."""
        ...

    def delete(self, challenge_id: int, *, user_id: str) -> None:
        """Delete a challenge by ID."""
        ...

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
        """Atomically add one calendar day and store the derived state.

        Raises CompletionConflict when the day is already stored.
        """
        ...

    def set_archived(
        self, challenge_id: int, *, user_id: str, archived_at: Optional[datetime] = None
    ) -> Challenge:
        """Mark a challenge archived (terminal)."""
        ...
