"""User account persistence: bcrypt hashed credentials over SQLite."""

from __future__ import annotations

from typing import Any

from .database import Database, resolve_database_path
from .errors import (
    AccountStoreError,
    DuplicateEmail,
    HashingError,
    InvalidInput,
    NotFound,
    PersistenceError,
)
from .models import CreateUser, User
from .passwords import PasswordHasher
from .users import UserStore, normalize_email


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "AccountStoreError",
    "CreateUser",
    "Database",
    "DuplicateEmail",
    "HashingError",
    "InvalidInput",
    "NotFound",
    "PasswordHasher",
    "PersistenceError",
    "User",
    "UserStore",
    "create_app",
    "normalize_email",
    "resolve_database_path",
]
