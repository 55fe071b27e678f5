"""User repository protocol."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional, Protocol

from ...models.user import User


class UserRepository(Protocol):
    """Repository for users and their reminder watermarks."""

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Retrieve a user by ID."""
        ...

    def get_by_chat_id(self, chat_id: str) -> Optional[User]:
        """Retrieve a user by delivery address."""
        ...

    def get_or_create(self, chat_id: str) -> User:
        """Return the user for ``chat_id``, creating it with defaults if missing."""
        ...

    def update_settings(self, user_id: int, **fields: Any) -> User:
        """Update reminder preferences."""
        ...

    def list_enabled_users(self, channel: str) -> list[User]:
        """Users with the ``morning`` or ``evening`` reminder switched on."""
        ...

    def set_watermark(self, user_id: int, channel: str, local_date: date) -> None:
        """Record the local date a channel was last handled for a user."""
        ...
