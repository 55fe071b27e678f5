"""Engine and session wiring for the habit and reminder tables."""

from __future__ import annotations

from contextlib import contextmanager
from functools import partial
from typing import Callable, ContextManager, Iterator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig

SessionFactory = Callable[[], ContextManager[Session]]


def open_database(config: BaseConfig) -> Engine:
    """Engine for ``config.DATABASE_URL`` with the user, habit and habit_log tables created."""

    from ..models import Habit, HabitLog, User  # noqa: F401  registers the tables

    engine = create_engine(config.DATABASE_URL, **config.sqlalchemy_engine_options())
    SQLModel.metadata.create_all(engine)
    return engine


@contextmanager
def transaction(engine: Engine) -> Iterator[Session]:
    # Repositories expunge rows they return, so keep attributes loaded after commit.
    session = Session(engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_session_factory(engine: Engine) -> SessionFactory:
    """Zero-argument callable handing out one committed-or-rolled-back session per call."""
    return partial(transaction, engine)


__all__ = ["SessionFactory", "create_session_factory", "open_database", "transaction"]
