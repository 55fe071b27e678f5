"""User model holding reminder preferences and send watermarks."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel


class User(SQLModel, table=True):
    """A person receiving reminders on a delivery channel."""

    __tablename__: ClassVar[str] = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    chat_id: str = Field(nullable=False, unique=True, index=True, max_length=64)
    # Minutes east of UTC; None means the deployment default (+180).
    timezone_offset: Optional[int] = Field(default=None)
    morning_time: str = Field(default="08:00", nullable=False, max_length=5)
    evening_time: str = Field(default="21:00", nullable=False, max_length=5)
    morning_enabled: bool = Field(default=True, nullable=False, index=True)
    evening_enabled: bool = Field(default=True, nullable=False, index=True)
    last_morning_reminder_date: Optional[date] = Field(default=None)
    last_evening_reminder_date: Optional[date] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    habits = Relationship(
        back_populates="user",
        sa_relationship=relationship("Habit", back_populates="user"),
    )
