"""Shared fixtures: a fresh SQLite-backed app per test."""

from typing import Any, Callable, Dict

import pytest
from fastapi.testclient import TestClient

from repo_favorites.api.server import create_app
from repo_favorites.config import Config


TEST_SECRET = "test-secret-do-not-use"


@pytest.fixture
def cfg(tmp_path) -> Config:
    return Config(
        DB_DSN=str(tmp_path / "test.sqlite"),
        API_PREFIX="/api",
        AUTH_JWT_SECRET=TEST_SECRET,
        AUTH_TOKEN_EXPIRE_SECONDS=3600,
        CORS_ALLOW_ORIGINS="",
    )


@pytest.fixture
def client(cfg: Config):
    app = create_app(cfg)
    # Entering the context runs startup (config validation + schema).
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client: TestClient) -> Callable[..., Dict[str, Any]]:
    """Register a user and return `{"token", "username", "headers"}`."""

    def _register(username: str, email: str | None = None, password: str = "secret1") -> Dict[str, Any]:
        resp = client.post(
            "/api/auth/register",
            json={"username": username, "email": email or f"{username}@x.com", "password": password},
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return {
            "token": body["token"],
            "username": body["username"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _register
