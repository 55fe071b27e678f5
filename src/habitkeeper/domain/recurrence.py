"""Recurrence rules and the due-date predicates built on them.

A habit repeats under exactly one of three rule kinds. Each kind is its own
frozen dataclass so that an interval length only exists on interval rules and
a weekday set only exists on weekday rules.

Two predicates answer "is it due?":

* :func:`is_due_on_date` anchors interval rules on the *first* completion (or
  the creation date) so historical and future calendars never shift.
* :func:`is_due_today` anchors interval rules on the *last* completion so an
  early or late mark reschedules the next occurrence.

Weekday numbering is 0 = Sunday through 6 = Saturday.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Iterable, Optional, Union

from ..errors import ValidationError
from .clock import DateLike, days_between, weekday_of

WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


class FrequencyType(str, Enum):
    """Storage discriminant for the rule kinds."""

    DAILY = "daily"
    INTERVAL = "interval"
    WEEKDAYS = "weekdays"


@dataclass(frozen=True, slots=True)
class DailyRule:
    """Due every day."""

    kind: ClassVar[FrequencyType] = FrequencyType.DAILY


@dataclass(frozen=True, slots=True)
class IntervalRule:
    """Due every ``frequency_days`` days."""

    frequency_days: int
    kind: ClassVar[FrequencyType] = FrequencyType.INTERVAL

    def __post_init__(self) -> None:
        value = self.frequency_days
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationError(f"frequency_days must be a positive integer, got {value!r}")


@dataclass(frozen=True, slots=True)
class WeekdaysRule:
    """Due on a fixed set of weekdays."""

    weekdays: frozenset[int]
    kind: ClassVar[FrequencyType] = FrequencyType.WEEKDAYS

    def __post_init__(self) -> None:
        values = frozenset(self.weekdays)
        for day in values:
            if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
                raise ValidationError(f"weekday values must be integers 0-6, got {day!r}")
        object.__setattr__(self, "weekdays", values)


RecurrenceRule = Union[DailyRule, IntervalRule, WeekdaysRule]


def parse_weekdays_column(raw: Optional[str]) -> frozenset[int]:
    """Decode the comma separated storage form (``"1,3,5"``)."""

    if not raw:
        return frozenset()
    try:
        return frozenset(int(part) for part in raw.split(",") if part.strip())
    except ValueError as exc:
        raise ValidationError(f"Malformed weekday list: {raw!r}") from exc


def weekdays_column(weekdays: Iterable[int]) -> str:
    """Encode a weekday set for storage, ascending."""

    return ",".join(str(day) for day in sorted(set(weekdays)))


def build_rule(
    frequency_type: Union[FrequencyType, str],
    frequency_days: int = 1,
    weekdays: Union[Iterable[int], str, None] = None,
) -> RecurrenceRule:
    """Build the rule variant from the flat fields a habit is stored with."""

    try:
        kind = FrequencyType(frequency_type)
    except ValueError as exc:
        raise ValidationError(f"Unknown frequency type: {frequency_type!r}") from exc

    if kind is FrequencyType.DAILY:
        return DailyRule()
    if kind is FrequencyType.INTERVAL:
        return IntervalRule(frequency_days)
    if isinstance(weekdays, str) or weekdays is None:
        return WeekdaysRule(parse_weekdays_column(weekdays))
    return WeekdaysRule(frozenset(weekdays))


def rule_for_habit(habit) -> RecurrenceRule:
    """Return the rule variant for a stored habit row."""

    return build_rule(habit.frequency_type, habit.frequency_days, habit.weekdays)


def is_due_on_date(
    rule: RecurrenceRule, reference_date: Optional[DateLike], target_date: DateLike
) -> bool:
    """Fixed-grid predicate for calendar views.

    ``reference_date`` is the first completion, or the creation date for a
    habit never completed. Interval rules without any reference are due.
    """

    if isinstance(rule, DailyRule):
        return True
    if isinstance(rule, IntervalRule):
        if reference_date is None:
            return True
        diff = days_between(reference_date, target_date)
        return diff >= 0 and diff % rule.frequency_days == 0
    if isinstance(rule, WeekdaysRule):
        return weekday_of(target_date) in rule.weekdays
    raise TypeError(f"Unsupported recurrence rule: {rule!r}")


def is_due_today(
    rule: RecurrenceRule, last_completed_date: Optional[DateLike], today: DateLike
) -> bool:
    """Forward-looking predicate anchored on the most recent completion."""

    if isinstance(rule, DailyRule):
        return True
    if isinstance(rule, IntervalRule):
        if last_completed_date is None:
            return True
        return days_between(last_completed_date, today) >= rule.frequency_days
    if isinstance(rule, WeekdaysRule):
        return weekday_of(today) in rule.weekdays
    raise TypeError(f"Unsupported recurrence rule: {rule!r}")


def scheduled_on(
    rule: RecurrenceRule,
    target_date: DateLike,
    *,
    created_on: Optional[DateLike],
    reference_date: Optional[DateLike],
    completed: bool = False,
) -> bool:
    """Calendar-view due-ness for one habit on one day.

    Days before creation are never due, even when a (stray) completion exists;
    otherwise a completed day always counts as due.
    """

    if created_on is not None and days_between(created_on, target_date) < 0:
        return False
    if completed:
        return True
    return is_due_on_date(rule, reference_date, target_date)


def scheduled_today(
    rule: RecurrenceRule,
    today: DateLike,
    *,
    created_on: Optional[DateLike],
    last_completed_date: Optional[DateLike],
    completed_today: bool = False,
) -> bool:
    """Due-ness for the today view, with the same guards as :func:`scheduled_on`."""

    if created_on is not None and days_between(created_on, today) < 0:
        return False
    if completed_today:
        return True
    return is_due_today(rule, last_completed_date, today)


def schedule_label(rule: RecurrenceRule) -> str:
    """Short human readable description of a rule."""

    if isinstance(rule, DailyRule):
        return "daily"
    if isinstance(rule, IntervalRule):
        if rule.frequency_days == 1:
            return "daily"
        return f"every {rule.frequency_days} days"
    if not rule.weekdays:
        return "never"
    # Monday first, Sunday last.
    ordered = sorted(rule.weekdays, key=lambda day: 7 if day == 0 else day)
    return ", ".join(WEEKDAY_NAMES[day] for day in ordered)


__all__ = [
    "DailyRule",
    "FrequencyType",
    "IntervalRule",
    "RecurrenceRule",
    "WEEKDAY_NAMES",
    "WeekdaysRule",
    "build_rule",
    "is_due_on_date",
    "is_due_today",
    "parse_weekdays_column",
    "rule_for_habit",
    "schedule_label",
    "scheduled_on",
    "scheduled_today",
    "weekdays_column",
]
