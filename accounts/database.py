"""SQLite-backed storage for user accounts."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from .errors import PersistenceError

logger = logging.getLogger("accounts.database")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    full_name TEXT NOT NULL,
    email TEXT NOT NULL,
    password TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email ON users(email);
"""


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the accounts database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "accounts.sqlite3").resolve(strict=False)


def current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def parse_datetime(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the ``users`` table and its unique email index on ``conn``."""

    conn.executescript(_SCHEMA)


class Database:
    """Owns the database location and hands out sessions against it."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA busy_timeout = 5000")
        return conn

    def initialize(self) -> None:
        """Create the required tables if they do not already exist."""

        with self.session() as conn:
            create_schema(conn)
        logger.debug("Schema ensured for %s", self._path)

    @contextmanager
    def session(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and rolls back on error.

        A failed commit is rolled back and raised as :class:`PersistenceError`.
        """

        conn = self._connect()
        try:
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            try:
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                logger.warning("Commit failed for %s: %s", self._path, exc)
                raise PersistenceError("Failed to commit session", cause=exc) from exc
        finally:
            conn.close()


__all__ = [
    "Database",
    "create_schema",
    "current_timestamp",
    "parse_datetime",
    "resolve_database_path",
    "serialize_datetime",
]
