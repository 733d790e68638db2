"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    """Read a positive integer setting, rejecting junk early."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {parsed}")
    return parsed


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return max(0.0, float(value))
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitBlitz"
    DB_FILENAME = "habitblitz.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("HABITBLITZ_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("HABITBLITZ_DATABASE_URL", self._build_sqlite_url())
        self.TIMEZONE = os.getenv("HABITBLITZ_TIMEZONE") or None

        # Challenge lifecycle
        self.CHALLENGE_TOTAL_DAYS = _env_int("HABITBLITZ_CHALLENGE_TOTAL_DAYS", 21)
        self.CONVERTED_HABIT_WEEKLY_GOAL = _env_int("HABITBLITZ_CONVERTED_HABIT_WEEKLY_GOAL", 7)
        self.CONVERSION_MAX_ATTEMPTS = _env_int("HABITBLITZ_CONVERSION_MAX_ATTEMPTS", 3)
        self.CONVERSION_RETRY_DELAY = _env_float("HABITBLITZ_CONVERSION_RETRY_DELAY", 1.0)

        # Streak/grid safety limits
        self.STREAK_WALK_LIMIT = _env_int("HABITBLITZ_STREAK_WALK_LIMIT", 104)
        self.GRID_MAX_WEEKS = _env_int("HABITBLITZ_GRID_MAX_WEEKS", 104)
        self.RELATED_CHALLENGE_WINDOW_DAYS = _env_int(
            "HABITBLITZ_RELATED_CHALLENGE_WINDOW_DAYS", 30
        )

        if self.TIMEZONE is not None:
            try:
                ZoneInfo(self.TIMEZONE)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise ValueError(f"Unknown HABITBLITZ_TIMEZONE: {self.TIMEZONE}") from exc

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("HABITBLITZ_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to per-user storage.
            fallback_path = Path.home() / f".{self.APP_NAME.lower()}"
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside DATA_DIR."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def local_zone(self) -> ZoneInfo | None:
        """Zone used to bucket completions; None means the system local zone."""

        return ZoneInfo(self.TIMEZONE) if self.TIMEZONE else None

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False
