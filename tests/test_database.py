from __future__ import annotations

import sqlite3
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from accounts.database import Database, parse_datetime, resolve_database_path, serialize_datetime
from accounts.errors import PersistenceError


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "nested" / "accounts.sqlite3")
    db.initialize()
    return db


def test_initialize_creates_users_table_with_unique_email(database: Database) -> None:
    assert database.path.exists()
    with database.session() as conn:
        columns = [row["name"] for row in conn.execute("PRAGMA table_info(users)").fetchall()]
        indexes = {row["name"]: row["unique"] for row in conn.execute("PRAGMA index_list(users)").fetchall()}

    assert columns == ["id", "full_name", "email", "password", "created_at", "updated_at"]
    assert indexes["idx_users_email"] == 1


def test_initialize_is_idempotent(database: Database) -> None:
    database.initialize()


def test_unique_index_rejects_duplicate_email(database: Database) -> None:
    row = ("id-1", "Ada", "ada@example.com", "hash", "2024-01-01T00:00:00+00:00", "2024-01-01T00:00:00+00:00")
    with database.session() as conn:
        conn.execute("INSERT INTO users VALUES (?, ?, ?, ?, ?, ?)", row)

    with pytest.raises(sqlite3.IntegrityError):
        with database.session() as conn:
            conn.execute("INSERT INTO users VALUES (?, ?, ?, ?, ?, ?)", ("id-2", *row[1:]))


def test_session_rolls_back_on_error(database: Database) -> None:
    with pytest.raises(RuntimeError):
        with database.session() as conn:
            conn.execute(
                "INSERT INTO users VALUES (?, ?, ?, ?, ?, ?)",
                ("id-1", "Ada", "ada@example.com", "hash", "t", "t"),
            )
            raise RuntimeError("boom")

    with database.session() as conn:
        assert conn.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 0


def test_resolve_database_path(tmp_path: Path) -> None:
    assert resolve_database_path(str(tmp_path / "x.sqlite3")) == (tmp_path / "x.sqlite3").resolve()
    assert resolve_database_path(None).name == "accounts.sqlite3"


def test_timestamps_round_trip_as_utc() -> None:
    moment = datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)
    assert parse_datetime(serialize_datetime(moment)) == moment
    assert parse_datetime("2024-05-01T12:30:15").tzinfo is timezone.utc


def test_session_commit_failure_raises_persistence_error(database: Database) -> None:
    with pytest.raises(PersistenceError) as excinfo:
        with database.session() as conn:
            conn.execute("PRAGMA foreign_keys = ON")
            conn.execute("CREATE TABLE parents (id INTEGER PRIMARY KEY)")
            conn.execute(
                "CREATE TABLE children (parent_id INTEGER REFERENCES parents(id) DEFERRABLE INITIALLY DEFERRED)"
            )
            conn.execute("INSERT INTO children VALUES (42)")

    assert isinstance(excinfo.value.__cause__, sqlite3.IntegrityError)
    with database.session() as conn:
        assert conn.execute("SELECT COUNT(*) FROM children").fetchone()[0] == 0
