from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from accounts.api import create_app
from accounts.database import Database
from accounts.passwords import PasswordHasher


EMAIL = "ada@example.com"
PASSWORD = "s3cr3t"


@pytest.fixture()
def client(tmp_path: Path) -> Iterator[TestClient]:
    database = Database(tmp_path / "accounts.sqlite3")
    app = create_app(database=database, hasher=PasswordHasher(rounds=4), initialize_database=True)
    with TestClient(app) as test_client:
        yield test_client


def _create(client: TestClient, email: str = EMAIL, password: str = PASSWORD):
    return client.post(
        "/users",
        json={"full_name": "Ada Lovelace", "email": email, "password": password},
    )


def test_create_find_delete_flow(client: TestClient) -> None:
    created = _create(client)
    assert created.status_code == 201
    body = created.json()
    assert body["full_name"] == "Ada Lovelace"
    assert body["email"] == EMAIL
    assert body["created_at"] == body["updated_at"]
    assert "password" not in body

    found = client.get(f"/users/{EMAIL}")
    assert found.status_code == 200
    assert found.json()["id"] == body["id"]

    deleted = client.delete(f"/users/{EMAIL}")
    assert deleted.status_code == 200
    assert deleted.json() == {"email": EMAIL}

    assert client.get(f"/users/{EMAIL}").status_code == 404
    assert client.delete(f"/users/{EMAIL}").status_code == 404


def test_duplicate_email_returns_conflict(client: TestClient) -> None:
    assert _create(client).status_code == 201
    assert _create(client, email="ADA@example.com").status_code == 409


def test_invalid_payload_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/users",
        json={"full_name": "  ", "email": "not-an-email", "password": PASSWORD},
    )
    assert response.status_code == 422


def test_unhashable_password_is_a_server_error(client: TestClient) -> None:
    response = _create(client, password="x" * 100)
    assert response.status_code == 500
    assert client.get(f"/users/{EMAIL}").status_code == 404


def test_unknown_user_is_not_found(client: TestClient) -> None:
    response = client.get("/users/nobody@example.com")
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"
