"""Streak and completion-rate statistics over a habit's completion log.

All functions take the dates on which the habit was marked completed and are
independent of each other and of storage.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from math import ceil
from typing import Iterable

from ..domain.clock import DateLike, days_between, to_date

DEFAULT_WINDOW_DAYS = 30


@dataclass(slots=True)
class HabitStats:
    """Per-habit aggregate report."""

    habit_id: int
    name: str
    emoji: str
    total_completed: int
    current_streak: int
    max_streak: int
    completion_rate: int


@dataclass(slots=True)
class UserStats:
    """Totals across a user's habits plus the active habits' reports."""

    total_habits: int
    active_habits: int
    total_completions: int
    habit_stats: list[HabitStats] = field(default_factory=list)


def _normalize(completed_dates: Iterable[DateLike]) -> list[date]:
    return sorted({to_date(value) for value in completed_dates})


def calculate_current_streak(
    completed_dates: Iterable[DateLike],
    frequency_days: int = 1,
    *,
    today: DateLike,
) -> int:
    """Count completions chained back from ``today`` within the allowed gap.

    The newest completion must lie at most ``frequency_days`` before ``today``
    and every earlier one at most ``frequency_days`` before its successor.
    Future-dated marks are skipped without breaking the chain.
    """

    expected = to_date(today)
    streak = 0
    for completed in reversed(_normalize(completed_dates)):
        gap = days_between(completed, expected)
        if gap < 0:
            continue
        if gap > frequency_days:
            break
        streak += 1
        expected = completed
    return streak


def calculate_max_streak(completed_dates: Iterable[DateLike], frequency_days: int = 1) -> int:
    """Longest run of completions whose consecutive gaps are ``<= frequency_days``."""

    days = _normalize(completed_dates)
    if not days:
        return 0

    longest = run = 1
    for previous, current in zip(days, days[1:]):
        if days_between(previous, current) <= frequency_days:
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest


def calculate_completion_rate(
    completed_dates: Iterable[DateLike],
    frequency_days: int = 1,
    *,
    today: DateLike,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> int:
    """Percentage of nominally expected completions within the trailing window.

    Not clamped: over-completing an interval habit yields more than 100.
    """

    end = to_date(today)
    expected = ceil(window_days / frequency_days)
    if expected == 0:
        return 100

    actual = sum(
        1
        for completed in _normalize(completed_dates)
        if 0 <= days_between(completed, end) < window_days
    )
    ratio = Decimal(actual) * 100 / Decimal(expected)
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_habit_stats(
    habit,
    completed_dates: Iterable[DateLike],
    *,
    today: DateLike,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> HabitStats:
    """Assemble the three statistics plus the raw total for one habit row."""

    days = _normalize(completed_dates)
    frequency_days = max(1, habit.frequency_days or 1)
    return HabitStats(
        habit_id=habit.id,
        name=habit.name,
        emoji=habit.emoji,
        total_completed=len(days),
        current_streak=calculate_current_streak(days, frequency_days, today=today),
        max_streak=calculate_max_streak(days, frequency_days),
        completion_rate=calculate_completion_rate(
            days, frequency_days, today=today, window_days=window_days
        ),
    )


def format_stats_summary(stats: UserStats, window_days: int = DEFAULT_WINDOW_DAYS) -> str:
    """Plain-text overview of a user's statistics."""

    if stats.active_habits == 0:
        return "No habits yet. Add the first one!"

    lines = [
        f"Active habits: {stats.active_habits}",
        f"Total completions: {stats.total_completions}",
        "",
    ]
    for habit in stats.habit_stats:
        lines.append(f"{habit.emoji} {habit.name}".strip())
        lines.append(f"  current streak: {habit.current_streak}")
        lines.append(f"  best streak: {habit.max_streak}")
        lines.append(f"  last {window_days} days: {habit.completion_rate}%")
    return "\n".join(lines)


__all__ = [
    "DEFAULT_WINDOW_DAYS",
    "HabitStats",
    "UserStats",
    "build_habit_stats",
    "calculate_completion_rate",
    "calculate_current_streak",
    "calculate_max_streak",
    "format_stats_summary",
]
