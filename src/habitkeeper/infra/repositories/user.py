"""SQLModel implementation of User repository."""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Optional

from sqlmodel import Session, select

from ...domain.channels import ReminderChannel
from ...errors import NotFoundError
from ...models.user import User

_SETTINGS_FIELDS = {
    "timezone_offset",
    "morning_time",
    "evening_time",
    "morning_enabled",
    "evening_enabled",
}


class SQLModelUserRepository:
    """SQLModel-based user repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        """Retrieve a user by ID."""
        with self.session_factory() as session:
            obj = session.get(User, user_id)
            if obj:
                session.expunge(obj)
            return obj

    def get_by_chat_id(self, chat_id: str) -> Optional[User]:
        """Retrieve a user by delivery address."""
        with self.session_factory() as session:
            obj = session.exec(select(User).where(User.chat_id == str(chat_id))).first()
            if obj:
                session.expunge(obj)
            return obj

    def get_or_create(self, chat_id: str) -> User:
        """Find or create the user behind a delivery address."""
        existing = self.get_by_chat_id(chat_id)
        if existing is not None:
            return existing
        with self.session_factory() as session:
            user = User(chat_id=str(chat_id))
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user

    def update_settings(self, user_id: int, **fields: Any) -> User:
        """Update reminder preferences; callers validate the values."""
        unknown = set(fields) - _SETTINGS_FIELDS
        if unknown:
            raise ValueError(f"Unknown user settings: {sorted(unknown)}")
        with self.session_factory() as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} not found")
            for key, value in fields.items():
                setattr(user, key, value)
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user

    def list_enabled_users(self, channel: ReminderChannel | str) -> list[User]:
        """Users with the given reminder channel switched on."""
        channel = ReminderChannel.coerce(channel)
        column = getattr(User, channel.enabled_field)
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(User).where(column == True).order_by(User.id)  # noqa: E712
                ).all()
            )
            session.expunge_all()
            return rows

    def set_watermark(self, user_id: int, channel: ReminderChannel | str, local_date: date) -> None:
        """Persist the last handled local date for a channel."""
        channel = ReminderChannel.coerce(channel)
        with self.session_factory() as session:
            user = session.get(User, user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} not found")
            setattr(user, channel.watermark_field, local_date)
            session.add(user)
            session.commit()


__all__ = ["SQLModelUserRepository"]
