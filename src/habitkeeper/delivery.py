"""Delivery channel contract and the log-only implementation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:  # pragma: no cover
    from .domain.channels import ReminderChannel
    from .models.user import User
    from .services.reminders import ReminderPayload

logger = logging.getLogger("habitkeeper.delivery")


class ReminderDelivery(Protocol):
    """Hands a rendered reminder to whatever transport reaches the user.

    Return True once the transport confirmed the hand-off. Return False or
    raise :class:`~habitkeeper.errors.DeliveryError` on failure; the sweep
    retries on its next tick.
    """

    def send(
        self, user: "User", channel: "ReminderChannel", payload: "ReminderPayload"
    ) -> bool:  # pragma: no cover - interface
        ...


class LoggingDelivery:
    """Writes reminders to the application log instead of a chat transport."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    def send(self, user, channel, payload) -> bool:
        self.log.info(
            "Reminder for %s (%s):\n%s",
            user.chat_id,
            channel.value,
            payload.render(),
            extra={"user_id": user.id, "channel": channel.value},
        )
        return True


__all__ = ["LoggingDelivery", "ReminderDelivery"]
