"""Domain models for the account store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class User:
    """Represents a user account stored in the accounts database.

    ``password`` always holds the bcrypt digest, never the plaintext.
    """

    id: UUID
    full_name: str
    email: str
    password: str = field(repr=False)
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class CreateUser:
    """Input required to register a new account."""

    full_name: str
    email: str
    password: str = field(repr=False)


__all__ = ["CreateUser", "User"]
