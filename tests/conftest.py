"""Pytest configuration and shared fixtures for HabitKeeper tests.

This module provides database fixtures, test data factories and a recording
delivery channel for testing the domain logic, repositories, services and the
reminder sweep without touching a real database or chat transport.
"""

from __future__ import annotations

import tempfile
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

import pytest
from sqlmodel import Session, SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from habitkeeper.errors import DeliveryError
from habitkeeper.infra.database import create_session_factory
from habitkeeper.infra.repositories import SQLModelHabitRepository, SQLModelUserRepository
from habitkeeper.models import Habit, HabitLog, User
from habitkeeper.services.habits import HabitService
from habitkeeper.services.reminders import ReminderSweep
from habitkeeper.services.weekly import WeeklyService


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Point configuration at a throwaway data directory."""
    monkeypatch.setenv("HABITKEEPER_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("HABITKEEPER_DATABASE_URL", raising=False)
    return tmp_path / "data"


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to the test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(
        f"sqlite:///{db_path}", echo=False, connect_args={"check_same_thread": False}
    )
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Session for arranging rows directly in a test."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def user_repo(session_factory):
    return SQLModelUserRepository(session_factory)


@pytest.fixture
def habit_repo(session_factory):
    return SQLModelHabitRepository(session_factory)


@pytest.fixture
def habit_service(habit_repo, user_repo):
    return HabitService(habit_repo, user_repo, default_offset=180, window_days=30)


@pytest.fixture
def weekly_service(habit_repo):
    return WeeklyService(habit_repo)


# =============================================================================
# Delivery double
# =============================================================================


class RecordingDelivery:
    """Delivery channel that records every reminder handed to it.

    ``outcome`` controls the result: True confirms, False refuses, an exception
    instance is raised. ``per_chat`` overrides the outcome for single users.
    """

    def __init__(self, outcome=True):
        self.outcome = outcome
        self.per_chat: dict[str, object] = {}
        self.sent: list[tuple] = []

    def send(self, user, channel, payload) -> bool:
        outcome = self.per_chat.get(user.chat_id, self.outcome)
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome:
            self.sent.append((user.chat_id, channel, payload))
        return bool(outcome)

    def chats(self) -> list[str]:
        return [chat_id for chat_id, _, _ in self.sent]


@pytest.fixture
def delivery():
    return RecordingDelivery()


@pytest.fixture
def failing_delivery():
    return RecordingDelivery(outcome=DeliveryError("transport unavailable"))


@pytest.fixture
def sweep(user_repo, habit_service, delivery):
    return ReminderSweep(user_repo, habit_service, delivery, default_offset=180)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def user_factory(db_session):
    """Factory for creating test users.

    Returns:
        Callable: Function that creates and persists User instances
    """
    counter = {"n": 0}

    def _create_user(chat_id: Optional[str] = None, **fields) -> User:
        """Create a user with reminder defaults.

        Args:
            chat_id: Delivery address (generated when omitted)
            **fields: Any other User column, e.g. ``timezone_offset=180``

        Returns:
            User: Persisted user instance
        """
        counter["n"] += 1
        user = User(chat_id=chat_id or f"chat-{counter['n']}", **fields)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create_user


@pytest.fixture
def user(user_factory):
    """Default user at UTC+3 with 08:00 / 21:00 reminders."""
    return user_factory("chat-default", timezone_offset=180)


@pytest.fixture
def habit_factory(db_session, user):
    """Factory for creating test habits.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        name: str = "Read",
        frequency_type: str = "daily",
        frequency_days: int = 1,
        weekdays: Optional[str] = None,
        created_at: date = date(2024, 1, 1),
        is_active: bool = True,
        emoji: str = "",
        owner: Optional[User] = None,
    ) -> Habit:
        """Create a test habit with sensible defaults.

        Args:
            name: Habit name
            frequency_type: ``daily``, ``interval`` or ``weekdays``
            frequency_days: Interval length for interval habits
            weekdays: Comma separated weekday numbers, 0 = Sunday
            created_at: Local creation date
            is_active: False for a soft-deleted habit
            owner: Owning user (defaults to the ``user`` fixture)

        Returns:
            Habit: Persisted habit instance
        """
        owner = owner or user
        habit = Habit(
            user_id=owner.id,
            name=name,
            emoji=emoji,
            frequency_type=frequency_type,
            frequency_days=frequency_days,
            weekdays=weekdays,
            created_at=created_at,
            is_active=is_active,
        )
        db_session.add(habit)
        db_session.commit()
        db_session.refresh(habit)
        return habit

    return _create_habit


@pytest.fixture
def log_factory(db_session):
    """Factory for writing completion marks.

    Returns:
        Callable: ``_mark(habit, days, completed=True)``
    """

    def _mark(habit: Habit, days: Iterable[date], completed: bool = True) -> list[HabitLog]:
        entries = [HabitLog(habit_id=habit.id, day=day, completed=completed) for day in days]
        db_session.add_all(entries)
        db_session.commit()
        return entries

    return _mark
