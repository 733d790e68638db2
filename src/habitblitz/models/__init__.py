"""SQLModel table exports."""

from .challenge import Challenge
from .habit import Habit

__all__ = [
    "Challenge",
    "Habit",
]
