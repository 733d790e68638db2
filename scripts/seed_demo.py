"""Demo data seeding script."""

from __future__ import annotations

import argparse

from habitblitz.config import BaseConfig
from habitblitz.context import create_app_context
from habitblitz.logging_config import setup_logging
from habitblitz.services.seed import generate_exercise_habit


def seed_demo(weeks: int = 42) -> None:
    """Create an Exercise habit with ``weeks`` of history for the local user."""

    config = BaseConfig()
    setup_logging(config)
    ctx = create_app_context(config)
    habit = generate_exercise_habit(
        ctx.habit_repo,
        user_id=ctx.require_user_id(),
        weeks=weeks,
        tz=config.local_zone(),
    )
    print(f"Created habit {habit.id}: {habit.current_streak} week streak")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--weeks", type=int, default=42)
    seed_demo(parser.parse_args().weeks)
