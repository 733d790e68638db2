"""Repository protocol definitions for domain layer."""

from .challenge import ChallengeRepository
from .habit import HabitRepository

__all__ = [
    "ChallengeRepository",
    "HabitRepository",
]
