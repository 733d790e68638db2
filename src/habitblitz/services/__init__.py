"""Service module exports."""

from . import (
    auth,
    conversion,
    dates,
    grid,
    jobs,
    legacy,
    recorder,
    seed,
    stats,
    streaks,
)

__all__ = [
    "auth",
    "conversion",
    "dates",
    "grid",
    "jobs",
    "legacy",
    "recorder",
    "seed",
    "stats",
    "streaks",
]
