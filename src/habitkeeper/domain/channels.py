"""Reminder channels and the user columns each one reads and writes."""

from __future__ import annotations

from enum import Enum

from ..errors import ValidationError


class ReminderChannel(str, Enum):
    MORNING = "morning"
    EVENING = "evening"

    @classmethod
    def coerce(cls, value: "ReminderChannel | str") -> "ReminderChannel":
        try:
            return cls(value)
        except ValueError as exc:
            raise ValidationError(f"Unknown reminder channel: {value!r}") from exc

    @property
    def enabled_field(self) -> str:
        return f"{self.value}_enabled"

    @property
    def time_field(self) -> str:
        return f"{self.value}_time"

    @property
    def watermark_field(self) -> str:
        return f"last_{self.value}_reminder_date"


__all__ = ["ReminderChannel"]
