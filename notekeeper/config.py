import os
from pathlib import Path

from pydantic import BaseModel, Field

DEFAULT_SQLITE_PATH = "notes.db"

_TRUTHY = {"1", "true", "yes", "on"}


def _read_backend() -> str:
    return (os.getenv("NOTES_BACKEND") or "sql").strip().lower()


def _build_database_url() -> str:
    """
    Build a SQLAlchemy database URL.

    Preference order:
    1) NOTES_DATABASE_URL, used as-is
    2) NOTES_DB_PATH, a SQLite file path
    3) Final fallback: ./notes.db
    """
    raw = (os.getenv("NOTES_DATABASE_URL") or "").strip()
    if raw:
        return raw

    db_path = (os.getenv("NOTES_DB_PATH") or "").strip() or DEFAULT_SQLITE_PATH
    return f"sqlite:///{Path(db_path).expanduser()}"


def _read_echo() -> bool:
    return (os.getenv("NOTES_SQL_ECHO") or "").strip().lower() in _TRUTHY


class Settings(BaseModel):
    """Process-level settings deciding which storage driver a store runs on."""

    backend: str = Field("sql", description="Storage driver name: 'memory' or 'sql'.")
    database_url: str = Field(f"sqlite:///{DEFAULT_SQLITE_PATH}", description="SQLAlchemy URL for the sql driver.")
    echo_sql: bool = Field(False, description="Echo SQL statements through the sqlalchemy logger.")

    # PUBLIC_INTERFACE
    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from NOTES_* environment variables."""
        return cls(
            backend=_read_backend(),
            database_url=_build_database_url(),
            echo_sql=_read_echo(),
        )
