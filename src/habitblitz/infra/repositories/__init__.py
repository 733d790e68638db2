"""Concrete repository implementations using SQLModel."""

from .challenge import SQLModelChallengeRepository
from .habit import SQLModelHabitRepository

__all__ = [
    "SQLModelChallengeRepository",
    "SQLModelHabitRepository",
]
