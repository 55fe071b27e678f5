"""Seven-day calendar view built on the fixed-grid due predicate."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from ..domain.clock import DateLike, to_date
from ..domain.recurrence import RecurrenceRule, rule_for_habit, schedule_label, scheduled_on
from ..domain.repositories import HabitRepository
from ..models.habit import Habit


class DayState(str, Enum):
    DONE = "done"
    MISSED = "missed"
    OFF = "off"
    FUTURE = "future"


DAY_SYMBOLS = {
    DayState.DONE: "#",
    DayState.MISSED: "x",
    DayState.OFF: "-",
    DayState.FUTURE: ".",
}


@dataclass(slots=True)
class HabitWeekRow:
    habit_id: int
    name: str
    emoji: str
    schedule: str
    states: list[DayState]


def day_state(
    rule: RecurrenceRule,
    day: DateLike,
    *,
    today: DateLike,
    created_on: Optional[DateLike],
    reference_date: Optional[DateLike],
    completed: bool,
) -> DayState:
    """Classify one calendar cell.

    Future days are never judged. A completed day shows as done, except before
    the habit existed, where every day is off.
    """

    day, today = to_date(day), to_date(today)
    if day > today:
        return DayState.FUTURE
    due = scheduled_on(
        rule, day, created_on=created_on, reference_date=reference_date, completed=completed
    )
    if not due:
        return DayState.OFF
    return DayState.DONE if completed else DayState.MISSED


class WeeklyService:
    """Builds per-habit rows of seven day states, Monday first."""

    def __init__(self, habit_repo: HabitRepository):
        self.habit_repo = habit_repo

    def week_states(self, habit: Habit, week_start: DateLike, today: DateLike) -> list[DayState]:
        monday = to_date(week_start)
        sunday = monday + timedelta(days=6)
        rule = rule_for_habit(habit)
        # Interval grids stay anchored on the first completion, else creation.
        reference = self.habit_repo.first_completion(habit.id) or habit.created_at
        completed = set(self.habit_repo.list_completions(habit.id, monday, sunday))
        return [
            day_state(
                rule,
                day,
                today=today,
                created_on=habit.created_at,
                reference_date=reference,
                completed=day in completed,
            )
            for day in (monday + timedelta(days=offset) for offset in range(7))
        ]

    def weekly_rows(self, user_id: int, week_start: DateLike, today: DateLike) -> list[HabitWeekRow]:
        rows = []
        for habit in self.habit_repo.list_active_habits(user_id):
            rows.append(
                HabitWeekRow(
                    habit_id=habit.id,
                    name=habit.name,
                    emoji=habit.emoji,
                    schedule=schedule_label(rule_for_habit(habit)),
                    states=self.week_states(habit, week_start, today),
                )
            )
        return rows


def render_week(rows: list[HabitWeekRow], week_start: date) -> str:
    """Plain-text grid of a week, one line pair per habit."""

    sunday = week_start + timedelta(days=6)
    lines = [f"Week {week_start:%d %b} - {sunday:%d %b}", ""]
    if not rows:
        lines.append("No habits yet.")
    for row in rows:
        lines.append(f"{row.emoji} {row.name} ({row.schedule})".strip())
        lines.append("  " + "".join(DAY_SYMBOLS[state] for state in row.states))
    lines.append("")
    lines.append("# done  x missed  - day off  . not yet")
    return "\n".join(lines)


__all__ = ["DayState", "HabitWeekRow", "WeeklyService", "day_state", "render_week"]
