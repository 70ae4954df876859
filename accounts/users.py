"""Lifecycle operations for user accounts: create, look up, delete."""
from __future__ import annotations

import logging
import re
import sqlite3
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence
from uuid import UUID

from .database import current_timestamp, parse_datetime, serialize_datetime
from .errors import DuplicateEmail, InvalidInput, NotFound, PersistenceError
from .models import CreateUser, User
from .passwords import PasswordHasher

logger = logging.getLogger("accounts.users")

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str) -> str:
    """Return the canonical form used to store and compare email addresses."""

    return email.strip().lower()


@contextmanager
def _write_transaction(conn: sqlite3.Connection, name: str) -> Iterator[None]:
    """Hold the database write lock from the first statement of the block.

    Outside a transaction this is ``BEGIN IMMEDIATE`` so a lookup and the write
    that follows it cannot interleave with another connection's write. Inside
    the caller's transaction it nests as a savepoint.
    """
    if conn.in_transaction:
        conn.execute(f"SAVEPOINT {name}")
        try:
            yield
        except BaseException:
            conn.execute(f"ROLLBACK TO SAVEPOINT {name}")
            conn.execute(f"RELEASE SAVEPOINT {name}")
            raise
        conn.execute(f"RELEASE SAVEPOINT {name}")
    else:
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")


class UserStore:
    """Maps :class:`CreateUser` requests onto rows of the ``users`` table.

    Every operation runs against a session (an open ``sqlite3`` connection)
    supplied by the caller. Committing and closing that session is the caller's
    job; see :meth:`accounts.database.Database.session`.
    """

    def __init__(self, hasher: Optional[PasswordHasher] = None) -> None:
        self._hasher = hasher or PasswordHasher()

    @property
    def hasher(self) -> PasswordHasher:
        return self._hasher

    def add_user(self, conn: sqlite3.Connection, data: CreateUser) -> User:
        """Hash the password and insert a new account in a single statement."""

        full_name = data.full_name.strip()
        if not full_name:
            raise InvalidInput("Full name must not be empty")

        email = normalize_email(data.email)
        if not _EMAIL_PATTERN.match(email):
            raise InvalidInput(f"Invalid email address: {data.email!r}")

        password_hash = self._hasher.hash(data.password)
        created_at = current_timestamp()
        user = User(
            id=uuid.uuid4(),
            full_name=full_name,
            email=email,
            password=password_hash,
            created_at=created_at,
            updated_at=created_at,
        )

        try:
            conn.execute(
                """
                INSERT INTO users (id, full_name, email, password, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    str(user.id),
                    user.full_name,
                    user.email,
                    user.password,
                    serialize_datetime(user.created_at),
                    serialize_datetime(user.updated_at),
                ),
            )
        except sqlite3.IntegrityError as exc:
            if "users.email" in str(exc):
                raise DuplicateEmail(email, cause=exc) from exc
            logger.warning("Insert rejected for %s: %s", email, exc)
            raise PersistenceError("Failed to insert user", cause=exc) from exc
        except sqlite3.Error as exc:
            logger.warning("Insert failed for %s: %s", email, exc)
            raise PersistenceError("Failed to insert user", cause=exc) from exc

        logger.info("Created user %s <%s>", user.id, user.email)
        return user

    def find_user_by_email(self, conn: sqlite3.Connection, email: str) -> User:
        normalized = normalize_email(email)
        try:
            row = conn.execute(
                """
                SELECT id, full_name, email, password, created_at, updated_at
                  FROM users
                 WHERE email = ?
                 LIMIT 1
                """,
                (normalized,),
            ).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Lookup failed for %s: %s", normalized, exc)
            raise PersistenceError("Failed to look up user", cause=exc) from exc

        if row is None:
            raise NotFound(normalized)
        return _row_to_user(row)

    def delete_user(self, conn: sqlite3.Connection, email: str) -> str:
        """Remove the account registered under ``email`` and return that email.

        The lookup and the delete run under the write lock, so a concurrent
        delete either finishes before the lookup (``NotFound``) or waits for
        this one to commit. When called inside an open transaction the pair
        nests as a savepoint; a delete that then affects no rows is reported as
        :class:`NotFound` and rolled back.
        """

        normalized = normalize_email(email)
        try:
            with _write_transaction(conn, "delete_user"):
                user = self.find_user_by_email(conn, normalized)
                cursor = conn.execute("DELETE FROM users WHERE email = ?", (user.email,))
                if cursor.rowcount == 0:
                    raise NotFound(normalized)
        except sqlite3.Error as exc:
            logger.warning("Delete failed for %s: %s", normalized, exc)
            raise PersistenceError("Failed to delete user", cause=exc) from exc

        logger.info("Deleted user %s <%s>", user.id, user.email)
        return user.email


def _row_to_user(row: Sequence[object]) -> User:
    return User(
        id=UUID(str(row[0])),
        full_name=str(row[1]),
        email=str(row[2]),
        password=str(row[3]),
        created_at=parse_datetime(str(row[4])),
        updated_at=parse_datetime(str(row[5])),
    )


__all__ = ["UserStore", "normalize_email"]
