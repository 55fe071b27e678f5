"""Habit tracking data structures."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .user import User


class Habit(SQLModel, table=True):
    """A user-defined habit with its recurrence rule stored as flat columns."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=80)
    emoji: str = Field(default="", max_length=16)
    frequency_type: str = Field(default="daily", nullable=False, max_length=16)
    frequency_days: int = Field(default=1, nullable=False)
    # Comma separated weekday numbers, 0 = Sunday.
    weekdays: Optional[str] = Field(default=None, max_length=32)
    is_active: bool = Field(default=True, nullable=False, index=True)
    created_at: date = Field(default_factory=date.today, nullable=False)

    logs: list["HabitLog"] = Relationship(
        back_populates="habit",
        sa_relationship=relationship("HabitLog", back_populates="habit"),
    )

    user: "User" = Relationship(sa_relationship=relationship("User", back_populates="habits"))


class HabitLog(SQLModel, table=True):
    """Completion mark for a habit on one local calendar day."""

    __tablename__: ClassVar[str] = "habit_log"
    __table_args__ = (UniqueConstraint("habit_id", "day", name="uq_habit_log_habit_day"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    habit_id: int = Field(foreign_key="habit.id", nullable=False, index=True)
    day: date = Field(nullable=False, index=True)
    completed: bool = Field(default=True, nullable=False)
    marked_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    habit: "Habit" = Relationship(
        back_populates="logs",
        sa_relationship=relationship("Habit", back_populates="logs"),
    )
