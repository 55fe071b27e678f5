"""SQLModel table exports."""

from .habit import Habit, HabitLog
from .user import User

__all__ = [
    "Habit",
    "HabitLog",
    "User",
]
