"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ...models.habit import Habit, HabitLog


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, habit_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = session.get(Habit, habit_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, user_id: int, include_inactive: bool = False) -> list[Habit]:
        """List all habits, optionally including inactive ones."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(Habit.created_at, Habit.id)  # type: ignore
            )

            if not include_inactive:
                statement = statement.where(Habit.is_active == True)  # noqa: E712

            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_active_habits(self, user_id: int) -> list[Habit]:
        """List only active habits."""
        return self.list_all(user_id, include_inactive=False)

    def create(self, habit: Habit) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def update(self, habit: Habit) -> Habit:
        """Update an existing habit."""
        with self.session_factory() as session:
            merged = session.merge(habit)
            session.commit()
            session.refresh(merged)
            session.expunge(merged)
            return merged

    def deactivate(self, habit_id: int) -> Optional[Habit]:
        """Soft-delete a habit; the completion log is kept."""
        with self.session_factory() as session:
            habit = session.get(Habit, habit_id)
            if habit is None:
                return None
            habit.is_active = False
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    # Completion log operations
    def get_log(self, habit_id: int, day: date) -> Optional[HabitLog]:
        """Get the log row for a specific day."""
        with self.session_factory() as session:
            obj = session.exec(
                select(HabitLog).where(HabitLog.habit_id == habit_id, HabitLog.day == day)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_completions(
        self, habit_id: int, start: Optional[date] = None, end: Optional[date] = None
    ) -> list[date]:
        """Completed dates for a habit within an inclusive range, ascending."""
        with self.session_factory() as session:
            statement = (
                select(HabitLog.day)
                .where(HabitLog.habit_id == habit_id)
                .where(HabitLog.completed == True)  # noqa: E712
            )
            if start is not None:
                statement = statement.where(HabitLog.day >= start)
            if end is not None:
                statement = statement.where(HabitLog.day <= end)
            return list(session.exec(statement.order_by(HabitLog.day)).all())  # type: ignore

    def first_completion(self, habit_id: int) -> Optional[date]:
        """Earliest completed date, or None."""
        return self._edge_completion(habit_id, newest=False)

    def last_completion(self, habit_id: int) -> Optional[date]:
        """Latest completed date, or None."""
        return self._edge_completion(habit_id, newest=True)

    def _edge_completion(self, habit_id: int, *, newest: bool) -> Optional[date]:
        order = HabitLog.day.desc() if newest else HabitLog.day.asc()  # type: ignore
        with self.session_factory() as session:
            return session.exec(
                select(HabitLog.day)
                .where(HabitLog.habit_id == habit_id)
                .where(HabitLog.completed == True)  # noqa: E712
                .order_by(order)
                .limit(1)
            ).first()

    def count_completions(self, habit_id: int) -> int:
        """Total number of completed days for a habit."""
        with self.session_factory() as session:
            return session.exec(
                select(func.count())
                .select_from(HabitLog)
                .where(HabitLog.habit_id == habit_id)
                .where(HabitLog.completed == True)  # noqa: E712
            ).one()

    def upsert_completion(self, habit_id: int, day: date, completed: bool) -> HabitLog:
        """Insert or overwrite the log row for a habit and day."""
        with self.session_factory() as session:
            existing = session.exec(
                select(HabitLog).where(HabitLog.habit_id == habit_id, HabitLog.day == day)
            ).first()

            if existing:
                existing.completed = completed
                existing.marked_at = datetime.now(timezone.utc)
                entry = existing
            else:
                entry = HabitLog(habit_id=habit_id, day=day, completed=completed)
            session.add(entry)
            session.commit()
            session.refresh(entry)
            session.expunge(entry)
            return entry

    def toggle_completion(self, habit_id: int, day: date) -> bool:
        """Flip the mark for a day (a missing row becomes completed)."""
        with self.session_factory() as session:
            existing = session.exec(
                select(HabitLog).where(HabitLog.habit_id == habit_id, HabitLog.day == day)
            ).first()

            if existing:
                existing.completed = not existing.completed
                existing.marked_at = datetime.now(timezone.utc)
                entry = existing
            else:
                entry = HabitLog(habit_id=habit_id, day=day, completed=True)
            session.add(entry)
            session.commit()
            return entry.completed
