"""Shared fixtures for the Snapnova test-suite."""
from __future__ import annotations

import base64
import os
from typing import Any, Callable, Iterator

import pytest
from fastapi.testclient import TestClient

# Ensure the database URL and JWT secrets are available before importing application modules.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_snapnova.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_REFRESH_SECRET_KEY", "test-refresh-secret-key")
os.environ.setdefault("DISABLE_CLEANUP", "true")

from snapnova.database import Base, engine  # noqa: E402
from snapnova.main import app  # noqa: E402
from snapnova.services import media_service  # noqa: E402

PNG_DATA_URI = "data:image/png;base64," + base64.b64encode(b"\x89PNG\r\n\x1a\nsnapnova-test").decode("ascii")
MP4_DATA_URI = "data:video/mp4;base64," + base64.b64encode(b"\x00\x00\x00\x18ftypmp42").decode("ascii")


@pytest.fixture(scope="session", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    """Start every test from empty tables."""

    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())
    yield


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def uploads(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Replace the Spaces upload with an in-memory recorder."""

    recorded: list[dict[str, Any]] = []

    async def _fake_upload(media, *, folder, client=None):
        recorded.append({"folder": folder, "content_type": media.content_type, "size": len(media.content)})
        return f"https://cdn.snapnova.test/{folder}/{len(recorded)}{media.extension}"

    monkeypatch.setattr(media_service, "upload_media", _fake_upload)
    return recorded


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client: TestClient) -> Callable[[str], dict[str, Any]]:
    """Register a user through the API and return ids, tokens and headers."""

    def _register(username: str, password: str = "secret-pass") -> dict[str, Any]:
        response = client.post(
            "/api/auth/register",
            json={"username": username, "email": f"{username}@snapnova.io", "password": password},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return {
            "id": body["user"]["id"],
            "username": username,
            "email": f"{username}@snapnova.io",
            "password": password,
            "access_token": body["access_token"],
            "refresh_token": body["refresh_token"],
            "headers": auth_headers(body["access_token"]),
        }

    return _register


@pytest.fixture
def befriend(client: TestClient) -> Callable[[dict[str, Any], dict[str, Any]], None]:
    """Make two registered users friends through the contacts API."""

    def _befriend(sender: dict[str, Any], recipient: dict[str, Any]) -> None:
        sent = client.post("/api/contacts/request", json={"user_id": recipient["id"]}, headers=sender["headers"])
        assert sent.status_code == 200, sent.text
        incoming = client.get("/api/contacts/requests", headers=recipient["headers"]).json()["incoming"]
        request_id = next(item["id"] for item in incoming if item["user"]["id"] == sender["id"])
        accepted = client.post("/api/contacts/accept", json={"request_id": request_id}, headers=recipient["headers"])
        assert accepted.status_code == 200, accepted.text

    return _befriend
