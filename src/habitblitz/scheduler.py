"""Background task scheduler for periodic operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.cron import CronTrigger

from .logging_config import get_logger

if TYPE_CHECKING:
    from .context import AppContext

logger = get_logger("scheduler")

WEEKLY_REFRESH_JOB = "weekly_counter_refresh"


class BackgroundScheduler:
    """Runs the week-rollover refresh of cached habit counters."""

    def __init__(self, ctx: AppContext):
        """Initialize the scheduler with app context.

        Args:
            ctx: Application context with repositories and config
        """
        self.ctx = ctx
        self.scheduler: APScheduler | None = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = APScheduler(timezone=self.ctx.config.TIMEZONE or None)

        # Weeks roll over at Sunday 00:00 local time
        self.scheduler.add_job(
            func=self.refresh_counters,
            trigger=CronTrigger(
                day_of_week="sun", hour=0, minute=0, timezone=self.ctx.config.TIMEZONE or None
            ),
            id=WEEKLY_REFRESH_JOB,
            name="Weekly Habit Counter Refresh",
            replace_existing=True,
        )
        logger.info("Scheduled weekly counter refresh for Sunday 00:00")

        self.scheduler.start()
        logger.info("Background scheduler started")

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def refresh_counters(self) -> int:
        """Recompute cached counters for the signed-in user; 0 when nobody is."""
        user_id = self.ctx.auth.current_user_id()
        if user_id is None:
            logger.info("Skipping counter refresh: no signed-in user")
            return 0
        try:
            return self.ctx.recorder.refresh_habit_counters(user_id=user_id)
        except Exception as exc:
            logger.error(f"Counter refresh failed: {exc}", exc_info=True)
            return 0


def create_scheduler(ctx: AppContext, *, auto_start: bool = False) -> BackgroundScheduler:
    """Create and optionally start a background scheduler.

    Args:
        ctx: Application context
        auto_start: Whether to start the scheduler immediately

    Returns:
        BackgroundScheduler instance
    """
    scheduler = BackgroundScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler
