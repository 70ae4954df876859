"""Exceptions raised by the account store."""

from __future__ import annotations


class AccountStoreError(RuntimeError):
    """Base class for account store failures."""


class InvalidInput(AccountStoreError, ValueError):
    """Raised when account input is rejected before it reaches the database."""


class HashingError(AccountStoreError):
    """Raised when a password cannot be hashed."""


class NotFound(AccountStoreError):
    """Raised when no user matches the requested email address."""

    def __init__(self, email: str) -> None:
        super().__init__(f"No user found with email {email!r}")
        self.email = email


class PersistenceError(AccountStoreError):
    """Raised when the underlying database rejects or fails a statement."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class DuplicateEmail(PersistenceError):
    """Raised when an account with the same email address already exists."""

    def __init__(self, email: str, *, cause: BaseException | None = None) -> None:
        super().__init__(f"A user with email {email!r} already exists", cause=cause)
        self.email = email


__all__ = [
    "AccountStoreError",
    "DuplicateEmail",
    "HashingError",
    "InvalidInput",
    "NotFound",
    "PersistenceError",
]
