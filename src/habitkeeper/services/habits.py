"""Habit service: creation, completion marks, today view and statistics."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Union

from ..domain.clock import DEFAULT_OFFSET_MINUTES, DateLike, local_date, resolve_offset, to_date, utc_now
from ..domain.recurrence import (
    FrequencyType,
    RecurrenceRule,
    build_rule,
    rule_for_habit,
    schedule_label,
    scheduled_today,
    weekdays_column,
)
from ..domain.repositories import HabitRepository, UserRepository
from ..errors import NotFoundError, ValidationError
from ..models.habit import Habit, HabitLog
from ..models.user import User
from .stats import DEFAULT_WINDOW_DAYS, HabitStats, UserStats, build_habit_stats
from .validation import clamp_frequency_days, parse_weekdays

logger = logging.getLogger("habitkeeper.services.habits")


@dataclass(slots=True)
class HabitStatus:
    """A habit as seen on a given local day."""

    habit_id: int
    name: str
    emoji: str
    rule: RecurrenceRule
    completed_today: bool
    is_due_today: bool

    @property
    def schedule(self) -> str:
        return schedule_label(self.rule)


class HabitService:
    """Coordinates habit repositories with the recurrence and statistics helpers."""

    def __init__(
        self,
        habit_repo: HabitRepository,
        user_repo: UserRepository,
        *,
        default_offset: int = DEFAULT_OFFSET_MINUTES,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ):
        self.habit_repo = habit_repo
        self.user_repo = user_repo
        self.default_offset = default_offset
        self.window_days = window_days

    # ------------------------------------------------------------------
    # Clock helpers
    # ------------------------------------------------------------------
    def local_today(self, user: User, now: Optional[datetime] = None) -> date:
        """The user's local calendar date at ``now`` (defaults to the current instant)."""

        offset = resolve_offset(user.timezone_offset, self.default_offset)
        return local_date(now or utc_now(), offset)

    def _require_habit(self, habit_id: int) -> Habit:
        habit = self.habit_repo.get_by_id(habit_id)
        if habit is None:
            raise NotFoundError(f"Habit {habit_id} not found")
        return habit

    def _require_user(self, user_id: int) -> User:
        user = self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def create_habit(
        self,
        user_id: int,
        name: str,
        *,
        emoji: str = "",
        frequency_type: Union[FrequencyType, str] = FrequencyType.DAILY,
        frequency_days: Union[int, str] = 1,
        weekdays: Union[str, Iterable[int], None] = None,
        created_on: Optional[DateLike] = None,
    ) -> Habit:
        """Validate user input and persist a new habit.

        ``created_on`` defaults to the owner's local today.
        """

        name = (name or "").strip()
        if not name:
            raise ValidationError("Habit name must not be empty")
        if len(name) > 80:
            raise ValidationError("Habit name must be at most 80 characters")

        fields = self._schedule_fields(frequency_type, frequency_days, weekdays)
        if created_on is None:
            created_on = self.local_today(self._require_user(user_id))

        habit = Habit(
            user_id=user_id,
            name=name,
            emoji=(emoji or "").strip(),
            created_at=to_date(created_on),
            **fields,
        )
        created = self.habit_repo.create(habit)
        logger.info(
            "Habit created",
            extra={"habit_id": created.id, "user_id": user_id, "frequency_type": created.frequency_type},
        )
        return created

    def update_schedule(
        self,
        habit_id: int,
        *,
        frequency_type: Union[FrequencyType, str],
        frequency_days: Union[int, str] = 1,
        weekdays: Union[str, Iterable[int], None] = None,
    ) -> Habit:
        """Replace a habit's recurrence rule."""

        habit = self._require_habit(habit_id)
        for key, value in self._schedule_fields(frequency_type, frequency_days, weekdays).items():
            setattr(habit, key, value)
        return self.habit_repo.update(habit)

    @staticmethod
    def _schedule_fields(frequency_type, frequency_days, weekdays) -> dict:
        try:
            kind = FrequencyType(frequency_type)
        except ValueError as exc:
            raise ValidationError(f"Unknown frequency type: {frequency_type!r}") from exc

        days = clamp_frequency_days(frequency_days) if kind is FrequencyType.INTERVAL else 1
        weekday_text = (
            weekdays_column(parse_weekdays(weekdays)) if kind is FrequencyType.WEEKDAYS else None
        )
        # Construct once so invalid combinations fail before anything is stored.
        build_rule(kind, days, weekday_text)
        return {"frequency_type": kind.value, "frequency_days": days, "weekdays": weekday_text}

    def delete_habit(self, habit_id: int) -> Habit:
        """Soft-delete: the habit disappears from views, its log stays."""

        habit = self.habit_repo.deactivate(habit_id)
        if habit is None:
            raise NotFoundError(f"Habit {habit_id} not found")
        logger.info("Habit deactivated", extra={"habit_id": habit_id})
        return habit

    # ------------------------------------------------------------------
    # Completion marks
    # ------------------------------------------------------------------
    def toggle_today(self, habit_id: int, user: User, now: Optional[datetime] = None) -> bool:
        """Toggle the mark for the user's local today and return the new state."""

        return self.habit_repo.toggle_completion(habit_id, self.local_today(user, now))

    def mark(self, habit_id: int, day: DateLike, completed: bool = True) -> HabitLog:
        """Set the mark for an explicit day, overwriting any previous mark."""

        return self.habit_repo.upsert_completion(habit_id, to_date(day), completed)

    # ------------------------------------------------------------------
    # Today view
    # ------------------------------------------------------------------
    def status_for(self, habit: Habit, today: DateLike) -> HabitStatus:
        today = to_date(today)
        rule = rule_for_habit(habit)
        log = self.habit_repo.get_log(habit.id, today)
        completed_today = bool(log and log.completed)
        due = scheduled_today(
            rule,
            today,
            created_on=habit.created_at,
            last_completed_date=self.habit_repo.last_completion(habit.id),
            completed_today=completed_today,
        )
        return HabitStatus(
            habit_id=habit.id,
            name=habit.name,
            emoji=habit.emoji,
            rule=rule,
            completed_today=completed_today,
            is_due_today=due,
        )

    def habits_with_today_status(self, user: User, today: Optional[DateLike] = None) -> list[HabitStatus]:
        """Every active habit of the user with its status for ``today``."""

        day = to_date(today) if today is not None else self.local_today(user)
        return [self.status_for(habit, day) for habit in self.habit_repo.list_active_habits(user.id)]

    def today_habits(self, user: User, today: Optional[DateLike] = None) -> list[HabitStatus]:
        """Only the habits due on ``today``."""

        return [status for status in self.habits_with_today_status(user, today) if status.is_due_today]

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------
    def compute_stats(self, habit_id: int, today: Optional[DateLike] = None) -> Optional[HabitStats]:
        """Streaks, completion rate and total for one active habit.

        Returns None for unknown or soft-deleted habits. ``today`` defaults to
        the owner's local today.
        """

        habit = self.habit_repo.get_by_id(habit_id)
        if habit is None or not habit.is_active:
            return None
        if today is None:
            owner = self.user_repo.get_by_id(habit.user_id)
            today = self.local_today(owner) if owner else utc_now().date()
        return build_habit_stats(
            habit,
            self.habit_repo.list_completions(habit.id),
            today=today,
            window_days=self.window_days,
        )

    def user_stats(self, user: User, today: Optional[DateLike] = None) -> UserStats:
        """Totals across all habits plus a report per active habit."""

        day = to_date(today) if today is not None else self.local_today(user)
        habits = self.habit_repo.list_all(user.id, include_inactive=True)
        active = [habit for habit in habits if habit.is_active]
        return UserStats(
            total_habits=len(habits),
            active_habits=len(active),
            total_completions=sum(self.habit_repo.count_completions(habit.id) for habit in habits),
            habit_stats=[
                build_habit_stats(
                    habit,
                    self.habit_repo.list_completions(habit.id),
                    today=day,
                    window_days=self.window_days,
                )
                for habit in active
            ],
        )


__all__ = ["HabitService", "HabitStatus"]
