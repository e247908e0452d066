from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient

from wellness_portal.core.config import (
    AppConfig,
    AuthConfig,
    LoggingConfig,
    SecurityConfig,
    StorageConfig,
)
from wellness_portal.storage.document_store import JsonFileDocumentStore
from web_api import create_app

TEST_SECRET = "test-secret-key-0123456789"
TEST_ISSUER = "wellness-portal-test"


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(
        secret_key=TEST_SECRET,
        access_token_ttl_seconds=3600,
        refresh_token_ttl_seconds=7 * 24 * 3600,
        issuer=TEST_ISSUER,
    )


@pytest.fixture
def app_config(tmp_path: Path, auth_config: AuthConfig) -> AppConfig:
    return AppConfig(
        auth=auth_config,
        storage=StorageConfig(data_dir=str(tmp_path / "data")),
        logging=LoggingConfig(level="INFO"),
        security=SecurityConfig(
            cors_allowed_origins=["http://localhost:5173"],
            request_max_bytes=64 * 1024,
            login_rate_limit_max_attempts=5,
            login_rate_limit_window_seconds=300,
            login_rate_limit_lock_seconds=600,
            state_db_path=str(tmp_path / "state.db"),
        ),
    )


@pytest.fixture
def store(tmp_path: Path) -> JsonFileDocumentStore:
    return JsonFileDocumentStore(tmp_path / "data")


@pytest.fixture
def client(app_config: AppConfig, store: JsonFileDocumentStore) -> Iterator[TestClient]:
    with TestClient(create_app(config=app_config, store=store)) as test_client:
        yield test_client


def register(
    client: TestClient,
    email: str = "a@x.com",
    password: str = "pw123456",
    name: str = "Ann",
    role: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"email": email, "password": password, "name": name}
    if role is not None:
        payload["role"] = role
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
