"""Boundary validators for user supplied schedule and timezone input.

Everything past these functions (recurrence rules, statistics, the reminder
sweep) assumes the values are already well formed.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from functools import lru_cache
from typing import Iterable, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from timezonefinder import TimezoneFinder

from ..domain.clock import utc_now
from ..errors import ValidationError

MIN_FREQUENCY_DAYS = 1
MAX_FREQUENCY_DAYS = 365
MIN_OFFSET_MINUTES = -12 * 60
MAX_OFFSET_MINUTES = 14 * 60

_TIME_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


def parse_time_of_day(value: str) -> str:
    """Validate ``H:MM`` / ``HH:MM`` and return the normalized ``HH:MM`` form."""

    match = _TIME_RE.match((value or "").strip())
    if match is None:
        raise ValidationError(f"Expected a 24-hour HH:MM time, got {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    return f"{hours:02d}:{minutes:02d}"


def clamp_frequency_days(value: Union[int, str]) -> int:
    """Coerce an interval length into ``[1, 365]``."""

    try:
        days = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Interval length must be a whole number, got {value!r}") from exc
    return max(MIN_FREQUENCY_DAYS, min(MAX_FREQUENCY_DAYS, days))


def parse_weekdays(value: Union[str, Iterable[int]]) -> frozenset[int]:
    """Accept ``"1,3,5"`` or an iterable of ints; every value must be 0-6."""

    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",") if part.strip()]
        try:
            days = [int(part) for part in parts]
        except ValueError as exc:
            raise ValidationError(f"Malformed weekday list: {value!r}") from exc
    else:
        days = list(value)

    for day in days:
        if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
            raise ValidationError(f"Weekdays must be integers 0-6 (0 = Sunday), got {day!r}")
    if not days:
        raise ValidationError("Pick at least one weekday")
    return frozenset(days)


def validate_timezone_offset(minutes: int) -> int:
    """Reject offsets outside UTC-12:00 .. UTC+14:00."""

    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise ValidationError(f"Timezone offset must be whole minutes, got {minutes!r}")
    if not MIN_OFFSET_MINUTES <= minutes <= MAX_OFFSET_MINUTES:
        raise ValidationError(f"Timezone offset {minutes} is outside UTC-12..UTC+14")
    return minutes


def parse_timezone_text(value: str) -> int:
    """Parse ``"3"``, ``"+3"``, ``"UTC-5"`` or ``"5,5"`` hours into minutes east of UTC."""

    cleaned = (value or "").strip().replace(",", ".")
    cleaned = re.sub(r"^(?i:utc|gmt)", "", cleaned).strip()
    try:
        hours = float(cleaned)
    except ValueError as exc:
        raise ValidationError(f"Cannot read a UTC offset from {value!r}") from exc
    if not -12 <= hours <= 14:
        raise ValidationError(f"UTC offset must be between -12 and +14 hours, got {value!r}")
    return validate_timezone_offset(round(hours * 60))


def parse_location_text(value: str) -> tuple[float, float]:
    """Parse ``"55.75, 37.61"`` (latitude, longitude) into a float pair."""

    parts = [part.strip() for part in (value or "").split(",")]
    if len(parts) != 2:
        raise ValidationError(f"Expected LAT,LON coordinates, got {value!r}")
    try:
        latitude, longitude = float(parts[0]), float(parts[1])
    except ValueError as exc:
        raise ValidationError(f"Expected LAT,LON coordinates, got {value!r}") from exc
    return latitude, longitude


@lru_cache(maxsize=1)
def _timezone_finder() -> TimezoneFinder:
    return TimezoneFinder()


def offset_from_location(
    latitude: float, longitude: float, now: Optional[datetime] = None
) -> Optional[int]:
    """Resolve coordinates to minutes east of UTC at ``now``.

    The IANA zone containing the point is looked up on land only, and its
    offset (DST included) is taken at ``now``. Returns ``None`` for open
    sea, invalid coordinates, unknown zones or offsets outside the accepted
    range.
    """

    try:
        zone_name = _timezone_finder().timezone_at_land(lng=longitude, lat=latitude)
    except ValueError:
        return None
    if not zone_name:
        return None

    try:
        zone = ZoneInfo(zone_name)
    except ZoneInfoNotFoundError:
        return None

    moment = now or utc_now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    offset = moment.astimezone(zone).utcoffset()
    if offset is None:
        return None
    try:
        return validate_timezone_offset(round(offset.total_seconds() / 60))
    except ValidationError:
        return None


__all__ = [
    "MAX_FREQUENCY_DAYS",
    "MIN_FREQUENCY_DAYS",
    "clamp_frequency_days",
    "offset_from_location",
    "parse_location_text",
    "parse_time_of_day",
    "parse_timezone_text",
    "parse_weekdays",
    "validate_timezone_offset",
]
