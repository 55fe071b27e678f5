"""Exception hierarchy shared by the domain, services and infrastructure."""

from __future__ import annotations


class HabitKeeperError(Exception):
    """Base class for all errors raised by HabitKeeper."""


class ValidationError(HabitKeeperError, ValueError):
    """User supplied input was rejected at the boundary."""


class NotFoundError(HabitKeeperError, LookupError):
    """A habit or user referenced by id does not exist."""


class DeliveryError(HabitKeeperError):
    """A reminder could not be handed to the delivery channel."""


__all__ = ["DeliveryError", "HabitKeeperError", "NotFoundError", "ValidationError"]
