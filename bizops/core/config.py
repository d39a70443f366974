"""
Configuration helpers for the bizops data layer.

Everything that comes from the environment (database URL, log level, data
folder for backups/exports, default windows) is read once into a frozen
Settings object so that services do not fetch os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

DEFAULT_DATABASE_URL = "sqlite:///bizops.db"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    sql_echo: bool
    log_level: str
    data_dir: Path
    follow_up_days: int
    recent_window_days: int


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        database_url=(os.getenv("DATABASE_URL") or "").strip() or DEFAULT_DATABASE_URL,
        sql_echo=_bool(os.getenv("SQL_ECHO"), False),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        data_dir=Path(os.getenv("BIZOPS_DATA_DIR") or "data"),
        follow_up_days=max(0, _int(os.getenv("FOLLOW_UP_DAYS", "7"), 7)),
        recent_window_days=max(1, _int(os.getenv("RECENT_WINDOW_DAYS", "30"), 30)),
    )
