"""Calendar and fixed-offset clock helpers.

Every user carries a static UTC offset in minutes (no DST rules). These helpers
turn a UTC instant plus that offset into the user's local calendar date and
time of day, and provide the single whole-day difference used everywhere.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union

DEFAULT_OFFSET_MINUTES = 180
DATE_FORMAT = "%Y-%m-%d"

DateLike = Union[date, str]


def utc_now() -> datetime:
    """Return the current instant as an aware UTC datetime."""

    return datetime.now(timezone.utc)


def to_date(value: DateLike) -> date:
    """Coerce a ``date``, ``datetime`` or ``YYYY-MM-DD`` string into a ``date``."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def format_date(value: DateLike) -> str:
    """Render a calendar date as ``YYYY-MM-DD``."""

    return to_date(value).strftime(DATE_FORMAT)


def resolve_offset(offset_minutes: Optional[int], default: int = DEFAULT_OFFSET_MINUTES) -> int:
    """Return the user's offset, falling back to ``default`` when unset."""

    return default if offset_minutes is None else offset_minutes


def local_now(now: datetime, offset_minutes: Optional[int]) -> datetime:
    """Return the naive local wall-clock time for ``now`` at a fixed offset.

    Naive ``now`` values are interpreted as UTC.
    """

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    utc = now.astimezone(timezone.utc).replace(tzinfo=None)
    return utc + timedelta(minutes=resolve_offset(offset_minutes))


def local_date(now: datetime, offset_minutes: Optional[int]) -> date:
    """Return the local calendar date for ``now``."""

    return local_now(now, offset_minutes).date()


def local_minutes(now: datetime, offset_minutes: Optional[int]) -> int:
    """Return minutes elapsed since local midnight."""

    local = local_now(now, offset_minutes)
    return local.hour * 60 + local.minute


def parse_time(value: str) -> tuple[int, int]:
    """Split an already validated ``HH:MM`` string into ``(hours, minutes)``."""

    hours, _, minutes = value.strip().partition(":")
    return int(hours or 0), int(minutes or 0)


def minutes_of_day(value: str) -> int:
    hours, minutes = parse_time(value)
    return hours * 60 + minutes


def days_between(start: DateLike, end: DateLike) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative if ``end`` is earlier)."""

    return to_date(end).toordinal() - to_date(start).toordinal()


def weekday_of(value: DateLike) -> int:
    """Weekday number with 0 = Sunday, 1 = Monday ... 6 = Saturday."""

    return (to_date(value).weekday() + 1) % 7


def week_start_monday(today: DateLike, offset_weeks: int = 0) -> date:
    """Monday of the week containing ``today``, shifted by ``offset_weeks``."""

    current = to_date(today)
    monday = current - timedelta(days=current.weekday())
    return monday + timedelta(weeks=offset_weeks)


__all__ = [
    "DEFAULT_OFFSET_MINUTES",
    "DateLike",
    "days_between",
    "format_date",
    "local_date",
    "local_minutes",
    "local_now",
    "minutes_of_day",
    "parse_time",
    "resolve_offset",
    "to_date",
    "utc_now",
    "week_start_monday",
    "weekday_of",
]
