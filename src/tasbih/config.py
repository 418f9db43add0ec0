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
    """Read an integer environment variable, falling back on bad input."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        return default


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "SmartTasbih"
    DB_FILENAME = "tasbih.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self) -> None:
        self.SECRET_KEY = os.getenv("TASBIH_SECRET_KEY", "replace-me")
        self.DEV_MODE = _env_bool("TASBIH_DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = os.getenv("TASBIH_DATABASE_URL", self._build_sqlite_url())
        self.DEFAULT_TIMEZONE = os.getenv("TASBIH_DEFAULT_TIMEZONE", "UTC")
        self.LOG_LEVEL = os.getenv("TASBIH_LOG_LEVEL", "INFO").upper()

        # Anti-abuse: sum of |delta| over the trailing window must not exceed the threshold.
        self.ABUSE_WINDOW_SECONDS = _env_int("TASBIH_ABUSE_WINDOW_SECONDS", 1)
        self.ABUSE_THRESHOLD = _env_int("TASBIH_ABUSE_THRESHOLD", 100)

        self.DAILY_SEGMENT_TARGET = _env_int("TASBIH_DAILY_SEGMENT_TARGET", 33)
        self.RESET_WINDOW_MINUTES = _env_int("TASBIH_RESET_WINDOW_MINUTES", 5)

        self.METRICS_CAPACITY = _env_int("TASBIH_METRICS_CAPACITY", 10_000)
        self.METRICS_RETENTION_MINUTES = _env_int("TASBIH_METRICS_RETENTION_MINUTES", 1440)
        self.METRICS_SLOW_THRESHOLD_MS = _env_int("TASBIH_METRICS_SLOW_THRESHOLD_MS", 150)
        self.METRICS_DEFAULT_WINDOW_MINUTES = _env_int("TASBIH_METRICS_WINDOW_MINUTES", 60)

        self.WEBHOOK_SECRET = os.getenv("TASBIH_WEBHOOK_SECRET") or None

        if not self.DEV_MODE and self.SECRET_KEY == "replace-me":
            raise ValueError("TASBIH_SECRET_KEY must be set in non-dev mode.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("TASBIH_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration used by the test-suite; callers override DATABASE_URL."""

    DEBUG = False
    TESTING = True
