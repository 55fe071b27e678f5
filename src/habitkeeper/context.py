"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import BaseConfig
from .delivery import LoggingDelivery, ReminderDelivery
from .infra.database import SessionFactory, create_session_factory, open_database
from .infra.repositories import SQLModelHabitRepository, SQLModelUserRepository
from .scheduler import ReminderScheduler
from .services.habits import HabitService
from .services.reminders import ReminderSweep
from .services.settings import SettingsService
from .services.weekly import WeeklyService


@dataclass
class AppContext:
    """Centralized application context with repositories and services."""

    # Configuration
    config: BaseConfig

    # Session factory
    session_factory: SessionFactory

    # Repositories
    user_repo: SQLModelUserRepository
    habit_repo: SQLModelHabitRepository

    # Services
    habit_service: HabitService
    weekly_service: WeeklyService
    settings_service: SettingsService
    sweep: ReminderSweep

    def create_scheduler(self) -> ReminderScheduler:
        """Scheduler ticking the sweep at the configured interval."""
        return ReminderScheduler(self.sweep, interval_seconds=self.config.SWEEP_INTERVAL_SECONDS)


def create_app_context(
    config: Optional[BaseConfig] = None, delivery: Optional[ReminderDelivery] = None
) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    session_factory = create_session_factory(open_database(config))

    user_repo = SQLModelUserRepository(session_factory)
    habit_repo = SQLModelHabitRepository(session_factory)

    habit_service = HabitService(
        habit_repo,
        user_repo,
        default_offset=config.TZ_OFFSET,
        window_days=config.STATS_WINDOW_DAYS,
    )
    sweep = ReminderSweep(
        user_repo,
        habit_service,
        delivery or LoggingDelivery(),
        default_offset=config.TZ_OFFSET,
    )

    return AppContext(
        config=config,
        session_factory=session_factory,
        user_repo=user_repo,
        habit_repo=habit_repo,
        habit_service=habit_service,
        weekly_service=WeeklyService(habit_repo),
        settings_service=SettingsService(user_repo),
        sweep=sweep,
    )
