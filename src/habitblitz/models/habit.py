"""Habit tracking data structures."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


class Habit(SQLModel, table=True):
    """A weekly-cadence habit the user marks done day by day.

    ``completed`` and ``current_streak`` are caches recomputed from
    ``completion_dates`` on every write.
    """

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(nullable=False, index=True, max_length=128)
    name: str = Field(nullable=False, max_length=80, index=True)
    icon: str = Field(default="✨", max_length=16)
    category: str = Field(default="", max_length=64)
    color: str = Field(default="purple", max_length=32)
    weekly_goal: int = Field(default=3, nullable=False)

    # DateKey strings and legacy {"seconds": ..} records, one per calendar day.
    completion_dates: list[Any] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    completed: int = Field(default=0, nullable=False)
    current_streak: int = Field(default=0, nullable=False)

    converted_from_challenge: bool = Field(default=False, nullable=False)
    original_challenge_id: Optional[int] = Field(default=None, index=True)

    # Naive local wall-clock times.
    created_at: datetime = Field(
        default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False)
    )
    last_completed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=False), nullable=True)
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=False), nullable=True)
    )
