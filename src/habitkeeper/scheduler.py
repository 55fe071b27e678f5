"""Background scheduler that ticks the reminder sweep."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .domain.channels import ReminderChannel
from .domain.clock import utc_now
from .services.reminders import ReminderSweep, SweepReport

logger = logging.getLogger("habitkeeper.scheduler")


class ReminderScheduler:
    """Runs the reminder sweep on a fixed interval in a background thread."""

    JOB_ID = "reminder_sweep"

    def __init__(
        self,
        sweep: ReminderSweep,
        *,
        interval_seconds: int = 60,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the scheduler.

        Args:
            sweep: Reminder sweep to run on every tick
            interval_seconds: Tick period
            clock: Source of the current UTC instant
        """
        self.sweep = sweep
        self.interval_seconds = interval_seconds
        self.clock = clock
        self.scheduler: Optional[APScheduler] = None

    @property
    def running(self) -> bool:
        return self.scheduler is not None

    def start(self) -> None:
        """Start ticking; the first tick fires immediately to catch up after downtime."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.sweep.resume()
        self.scheduler = APScheduler(timezone=timezone.utc)
        self.scheduler.add_job(
            func=self.run_once,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc),
            id=self.JOB_ID,
            name="Reminder Sweep",
            replace_existing=True,
            # Never overlap: a tick that fires while a sweep runs is dropped.
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc),
        )
        self.scheduler.start()
        logger.info(f"Reminder scheduler started (every {self.interval_seconds}s)")

    def stop(self, wait: bool = True) -> None:
        """Stop gracefully: the running pass finishes its current user, then exits."""
        if self.scheduler is not None:
            self.sweep.request_stop()
            self.scheduler.shutdown(wait=wait)
            self.scheduler = None
            # Leave the sweep usable for one-shot runs after the loop is gone.
            self.sweep.resume()
            logger.info("Reminder scheduler stopped")

    def run_once(self, now: Optional[datetime] = None) -> list[SweepReport]:
        """Run the morning and evening passes for one tick."""
        now = now or self.clock()
        reports: list[SweepReport] = []
        for channel in ReminderChannel:
            try:
                reports.append(self.sweep.run_sweep_tick(now, channel))
            except Exception as exc:
                logger.error(f"Reminder sweep tick failed ({channel.value}): {exc}", exc_info=True)
        return reports


def create_scheduler(
    sweep: ReminderSweep, *, interval_seconds: int = 60, auto_start: bool = False
) -> ReminderScheduler:
    """Create and optionally start a reminder scheduler.

    Args:
        sweep: Reminder sweep to drive
        interval_seconds: Tick period
        auto_start: Whether to start the scheduler immediately

    Returns:
        ReminderScheduler instance
    """
    scheduler = ReminderScheduler(sweep, interval_seconds=interval_seconds)
    if auto_start:
        scheduler.start()
    return scheduler
