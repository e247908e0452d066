from __future__ import annotations

import json
import logging

import pytest

from wellness_portal.core.config import AppConfig, ConfigError
from wellness_portal.core.logging import CORRELATION_ID_CTX, JsonLogFormatter, correlation_scope


def test_missing_secret_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("AUTH_SECRET_KEY", raising=False)

    with pytest.raises(ConfigError):
        AppConfig.from_env()


def test_short_secret_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_SECRET_KEY", "short")

    with pytest.raises(ConfigError):
        AppConfig.from_env()


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_SECRET_KEY", "a-long-enough-secret")
    monkeypatch.setenv("AUTH_ACCESS_TOKEN_TTL_SECONDS", "60")
    monkeypatch.setenv("AUTH_PASSWORD_RESET_ENABLED", "false")
    monkeypatch.setenv("MONGODB_URI", "")
    monkeypatch.setenv("PORTAL_DATA_DIR", "/tmp/portal-data")
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "https://a.example, https://b.example")

    config = AppConfig.from_env()

    assert config.auth.access_token_ttl_seconds == 60
    assert config.auth.refresh_token_ttl_seconds == 7 * 24 * 3600
    assert config.auth.password_reset_enabled is False
    assert config.storage.data_dir == "/tmp/portal-data"
    assert config.storage.mongodb_uri == ""
    assert config.security.cors_allowed_origins == ["https://a.example", "https://b.example"]


def test_invalid_integer_is_a_config_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_SECRET_KEY", "a-long-enough-secret")
    monkeypatch.setenv("REQUEST_MAX_BYTES", "lots")

    with pytest.raises(ConfigError):
        AppConfig.from_env()


def test_json_formatter_includes_correlation_and_extra_fields() -> None:
    record = logging.LogRecord(
        name="wellness_portal.auth",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="login_succeeded",
        args=(),
        exc_info=None,
    )
    record.user_id = "u1"

    with correlation_scope("req-1"):
        line = json.loads(JsonLogFormatter().format(record))

    assert line["event"] == "login_succeeded"
    assert line["correlation_id"] == "req-1"
    assert line["user_id"] == "u1"
    assert "message_code" not in line
    assert CORRELATION_ID_CTX.get() == ""
