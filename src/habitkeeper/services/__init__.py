"""Service layer exports."""

from .habits import HabitService, HabitStatus
from .reminders import ReminderSweep, SweepDecision, SweepReport, decide
from .settings import SettingsService
from .stats import (
    HabitStats,
    UserStats,
    calculate_completion_rate,
    calculate_current_streak,
    calculate_max_streak,
)
from .weekly import DayState, WeeklyService

__all__ = [
    "DayState",
    "HabitService",
    "HabitStats",
    "HabitStatus",
    "ReminderSweep",
    "SettingsService",
    "SweepDecision",
    "SweepReport",
    "UserStats",
    "WeeklyService",
    "calculate_completion_rate",
    "calculate_current_streak",
    "calculate_max_streak",
    "decide",
]
