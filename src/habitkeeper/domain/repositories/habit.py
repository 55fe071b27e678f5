"""Habit repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from ...models.habit import Habit, HabitLog


class HabitRepository(Protocol):
    """Repository for habits and their completion log."""

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        ...

    def list_active_habits(self, user_id: int) -> list[Habit]:
        """List a user's active habits, oldest first."""
        ...

    def list_all(self, user_id: int, include_inactive: bool = False) -> list[Habit]:
        """List a user's habits, optionally including soft-deleted ones."""
        ...

    def create(self, habit: Habit) -> Habit:
        """Create a new habit."""
        ...

    def update(self, habit: Habit) -> Habit:
        """Update an existing habit."""
        ...

    def deactivate(self, habit_id: int) -> Optional[Habit]:
        """Soft-delete a habit, keeping its log."""
        ...

    # Completion log operations
    def get_log(self, habit_id: int, day: date) -> Optional[HabitLog]:
        """Get the log row for one day, if any."""
        ...

    def list_completions(
        self, habit_id: int, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[date]:
        """Completed dates within an inclusive range, ascending."""
        ...

    def first_completion(self, habit_id: int) -> Optional[date]:
        """Earliest completed date."""
        ...

    def last_completion(self, habit_id: int) -> Optional[date]:
        """Latest completed date."""
        ...

    def count_completions(self, habit_id: int) -> int:
        """Total completed days."""
        ...

    def upsert_completion(self, habit_id: int, day: date, completed: bool) -> HabitLog:
        """Insert or overwrite the log row for ``(habit_id, day)``."""
        ...

    def toggle_completion(self, habit_id: int, day: date) -> bool:
        """Flip the mark for a day and return the new state."""
        ...
