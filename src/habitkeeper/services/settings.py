"""Reminder preferences: times, channel switches and the user's UTC offset."""

from __future__ import annotations

import logging
from typing import Optional, Tuple, Union

from ..domain.channels import ReminderChannel
from ..domain.repositories import UserRepository
from ..errors import NotFoundError, ValidationError
from ..models.user import User
from .validation import (
    offset_from_location,
    parse_location_text,
    parse_time_of_day,
    parse_timezone_text,
    validate_timezone_offset,
)

logger = logging.getLogger("habitkeeper.services.settings")


class SettingsService:
    """Validates preference changes before they reach the user store."""

    def __init__(self, user_repo: UserRepository):
        self.user_repo = user_repo

    def update_reminders(
        self,
        user_id: int,
        *,
        morning_time: Optional[str] = None,
        evening_time: Optional[str] = None,
        morning_enabled: Optional[bool] = None,
        evening_enabled: Optional[bool] = None,
        timezone: Union[str, int, None] = None,
        location: Union[str, Tuple[float, float], None] = None,
    ) -> User:
        """Apply the given changes; ``None`` leaves a setting untouched.

        ``timezone`` accepts whole minutes east of UTC or hour text such as
        ``"UTC+3"``. ``location`` is a ``(latitude, longitude)`` pair or its
        ``"LAT,LON"`` text and wins over ``timezone`` when both are given.
        Changing a time does not reset today's watermark.
        """

        fields: dict = {}
        if morning_time is not None:
            fields[ReminderChannel.MORNING.time_field] = parse_time_of_day(morning_time)
        if evening_time is not None:
            fields[ReminderChannel.EVENING.time_field] = parse_time_of_day(evening_time)
        if morning_enabled is not None:
            fields[ReminderChannel.MORNING.enabled_field] = bool(morning_enabled)
        if evening_enabled is not None:
            fields[ReminderChannel.EVENING.enabled_field] = bool(evening_enabled)
        if timezone is not None:
            fields["timezone_offset"] = (
                parse_timezone_text(timezone)
                if isinstance(timezone, str)
                else validate_timezone_offset(timezone)
            )
        if location is not None:
            if isinstance(location, str):
                location = parse_location_text(location)
            offset = offset_from_location(*location)
            if offset is None:
                raise ValidationError(f"No timezone found for location {location!r}")
            fields["timezone_offset"] = offset

        if not fields:
            user = self.user_repo.get_by_id(user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} not found")
            return user

        user = self.user_repo.update_settings(user_id, **fields)
        logger.info("Reminder settings updated", extra={"user_id": user_id, "fields": sorted(fields)})
        return user


__all__ = ["SettingsService"]
