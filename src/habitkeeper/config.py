"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, rejecting garbage early."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitKeeper"
    DB_FILENAME = "habitkeeper.db"
    DEFAULT_TZ_OFFSET = 180
    MORNING_TIME = "08:00"
    EVENING_TIME = "21:00"

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("HABITKEEPER_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("HABITKEEPER_DATABASE_URL", self._build_sqlite_url())
        self.TZ_OFFSET = _env_int("HABITKEEPER_DEFAULT_TZ_OFFSET", self.DEFAULT_TZ_OFFSET)
        self.SWEEP_INTERVAL_SECONDS = _env_int("HABITKEEPER_SWEEP_INTERVAL_SECONDS", 60)
        self.STATS_WINDOW_DAYS = _env_int("HABITKEEPER_STATS_WINDOW_DAYS", 30)
        if self.SWEEP_INTERVAL_SECONDS < 1:
            raise ValueError("HABITKEEPER_SWEEP_INTERVAL_SECONDS must be positive.")
        if self.STATS_WINDOW_DAYS < 1:
            raise ValueError("HABITKEEPER_STATS_WINDOW_DAYS must be positive.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("HABITKEEPER_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            # The scheduler thread and the CLI share one engine.
            return {"connect_args": {"check_same_thread": False}}
        return {}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration for the test-suite: throwaway in-memory database."""

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = "sqlite://"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        from sqlalchemy.pool import StaticPool

        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
