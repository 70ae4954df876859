"""bcrypt password hashing for stored accounts."""
from __future__ import annotations

from passlib.context import CryptContext

from .errors import HashingError

DEFAULT_ROUNDS = 12
MIN_ROUNDS = 4
MAX_ROUNDS = 31

# bcrypt only consumes the first 72 bytes of a secret.
BCRYPT_MAX_PASSWORD_BYTES = 72


def validate_rounds(rounds: int) -> int:
    if not MIN_ROUNDS <= rounds <= MAX_ROUNDS:
        raise ValueError(f"bcrypt rounds must be between {MIN_ROUNDS} and {MAX_ROUNDS}, got {rounds}")
    return rounds


class PasswordHasher:
    """Salted bcrypt hashing with a configurable work factor."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self._rounds = validate_rounds(int(rounds))
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=self._rounds,
        )

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        """Return a bcrypt digest for ``password``.

        Raises :class:`HashingError` instead of silently truncating secrets that
        bcrypt cannot represent.
        """

        if not isinstance(password, str):
            raise HashingError("Password must be a string")
        if not password:
            raise HashingError("Password must not be empty")
        if len(password.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise HashingError(
                f"Password exceeds the bcrypt limit of {BCRYPT_MAX_PASSWORD_BYTES} bytes"
            )

        try:
            return self._context.hash(password)
        except (TypeError, ValueError) as exc:
            raise HashingError(f"Password could not be hashed: {exc}") from exc

    def verify(self, password: str, hashed: str) -> bool:
        if not password or not hashed:
            return False
        try:
            return self._context.verify(password, hashed)
        except (TypeError, ValueError):
            return False


__all__ = [
    "BCRYPT_MAX_PASSWORD_BYTES",
    "DEFAULT_ROUNDS",
    "PasswordHasher",
    "validate_rounds",
]
