"""FastAPI application that exposes the account store over HTTP."""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Iterator
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, HTTPException, status
from pydantic import BaseModel, EmailStr, Field, field_validator

from .config import load_settings
from .database import Database
from .errors import DuplicateEmail, HashingError, InvalidInput, NotFound, PersistenceError
from .models import CreateUser, User
from .passwords import PasswordHasher
from .users import UserStore

logger = logging.getLogger("accounts.api")


class CreateUserRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("full_name")
    @classmethod
    def _normalize_full_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("full_name must not be empty")
        return stripped


class UserResponse(BaseModel):
    id: UUID
    full_name: str
    email: str
    created_at: datetime
    updated_at: datetime


class DeleteUserResponse(BaseModel):
    email: str


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        full_name=user.full_name,
        email=user.email,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _commit(conn: sqlite3.Connection) -> None:
    # Runs before the 201 response is built.
    try:
        conn.commit()
    except sqlite3.Error as exc:
        raise PersistenceError("Failed to commit user", cause=exc) from exc


def _store_failure(exc: Exception) -> HTTPException:
    logger.error("Account store failure: %s", exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="The account store could not complete the request",
    )


def create_app(
    *,
    database: Database | None = None,
    hasher: PasswordHasher | None = None,
    initialize_database: bool = False,
) -> FastAPI:
    if database is None or hasher is None:
        settings = load_settings()
        if database is None:
            database = Database(settings.database_path)
            initialize_database = True
        if hasher is None:
            hasher = PasswordHasher(settings.bcrypt_rounds)

    if initialize_database:
        database.initialize()

    store = UserStore(hasher)

    app = FastAPI(
        title="Account Store",
        description="Create, look up and delete user accounts",
        version="1.0.0",
    )

    def get_session() -> Iterator[sqlite3.Connection]:
        with database.session() as conn:
            yield conn

    router = APIRouter(prefix="/users", tags=["users"])

    @router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
    def add_user(
        payload: CreateUserRequest,
        conn: sqlite3.Connection = Depends(get_session),
    ) -> UserResponse:
        data = CreateUser(full_name=payload.full_name, email=str(payload.email), password=payload.password)
        try:
            user = store.add_user(conn, data)
            _commit(conn)
        except DuplicateEmail as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        except InvalidInput as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except (HashingError, PersistenceError) as exc:
            raise _store_failure(exc) from exc
        return _user_to_response(user)

    @router.get("/{email}", response_model=UserResponse)
    def find_user(email: str, conn: sqlite3.Connection = Depends(get_session)) -> UserResponse:
        try:
            user = store.find_user_by_email(conn, email)
        except NotFound as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from exc
        except PersistenceError as exc:
            raise _store_failure(exc) from exc
        return _user_to_response(user)

    @router.delete("/{email}", response_model=DeleteUserResponse)
    def delete_user(email: str, conn: sqlite3.Connection = Depends(get_session)) -> DeleteUserResponse:
        try:
            deleted = store.delete_user(conn, email)
        except NotFound as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from exc
        except PersistenceError as exc:
            raise _store_failure(exc) from exc
        return DeleteUserResponse(email=deleted)

    app.include_router(router)
    return app


__all__ = ["create_app"]
