"""Fixed-length blitz challenge records."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Optional

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel


class Challenge(SQLModel, table=True):
    """A run of ``total_days`` consecutive daily completions (21 by default).

    Lifecycle: active -> completed (inactive) -> archived. Archived is terminal.
    """

    __tablename__: ClassVar[str] = "challenge"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(nullable=False, index=True, max_length=128)
    name: str = Field(nullable=False, max_length=80, index=True)
    icon: str = Field(default="⚡", max_length=16)
    category: str = Field(default="", max_length=64)
    color: str = Field(default="purple", max_length=32)
    reward: str = Field(default="", max_length=255)
    total_days: int = Field(default=21, nullable=False)

    completion_dates: list[Any] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    current_streak: int = Field(default=0, nullable=False)

    is_active: bool = Field(default=True, nullable=False)
    is_completed: bool = Field(default=False, nullable=False)
    is_archived: bool = Field(default=False, nullable=False, index=True)

    # Naive local wall-clock times.
    created_at: datetime = Field(
        default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False)
    )
    last_completed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=False), nullable=True)
    )
    archived_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=False), nullable=True)
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=False), nullable=True)
    )
