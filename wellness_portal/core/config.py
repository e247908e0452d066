"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

MIN_SECRET_KEY_LENGTH = 16


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or malformed."""


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AuthConfig:
    """Authentication-related configuration."""

    secret_key: str
    access_token_ttl_seconds: int = 3600
    refresh_token_ttl_seconds: int = 7 * 24 * 3600
    issuer: str = "wellness-portal"
    password_reset_enabled: bool = True


@dataclass(frozen=True)
class StorageConfig:
    """Document store backend configuration."""

    data_dir: str = "runtime/data"
    mongodb_uri: str = ""
    mongodb_db: str = "wellness_portal"

    @staticmethod
    def from_env() -> "StorageConfig":
        return StorageConfig(
            data_dir=os.getenv("PORTAL_DATA_DIR", "").strip() or "runtime/data",
            mongodb_uri=os.getenv("MONGODB_URI", "").strip(),
            mongodb_db=os.getenv("MONGODB_DB", "").strip() or "wellness_portal",
        )


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging configuration."""

    level: str = "INFO"


@dataclass(frozen=True)
class SecurityConfig:
    """API perimeter security settings."""

    cors_allowed_origins: list[str]
    request_max_bytes: int
    login_rate_limit_max_attempts: int
    login_rate_limit_window_seconds: int
    login_rate_limit_lock_seconds: int
    state_db_path: str


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    auth: AuthConfig
    storage: StorageConfig
    logging: LoggingConfig
    security: SecurityConfig

    @staticmethod
    def from_env() -> "AppConfig":
        """Build app config from process environment.

        The token signing secret has no fallback: a missing or short
        ``AUTH_SECRET_KEY`` aborts startup with ``ConfigError``.
        """
        secret_key = os.getenv("AUTH_SECRET_KEY", "").strip()
        if not secret_key:
            raise ConfigError("AUTH_SECRET_KEY is required")
        if len(secret_key) < MIN_SECRET_KEY_LENGTH:
            raise ConfigError(
                f"AUTH_SECRET_KEY must be at least {MIN_SECRET_KEY_LENGTH} characters"
            )

        access_ttl = _env_int("AUTH_ACCESS_TOKEN_TTL_SECONDS", 3600)
        refresh_ttl = _env_int("AUTH_REFRESH_TOKEN_TTL_SECONDS", 7 * 24 * 3600)
        if access_ttl <= 0 or refresh_ttl <= 0:
            raise ConfigError("Token TTLs must be positive")
        issuer = os.getenv("AUTH_ISSUER", "").strip() or "wellness-portal"

        cors_allowed_origins = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ALLOWED_ORIGINS",
                "http://localhost:5173,http://127.0.0.1:5173",
            ).split(",")
            if origin.strip()
        ]

        return AppConfig(
            auth=AuthConfig(
                secret_key=secret_key,
                access_token_ttl_seconds=access_ttl,
                refresh_token_ttl_seconds=refresh_ttl,
                issuer=issuer,
                password_reset_enabled=_env_bool("AUTH_PASSWORD_RESET_ENABLED", True),
            ),
            storage=StorageConfig.from_env(),
            logging=LoggingConfig(level=os.getenv("LOG_LEVEL", "INFO").strip() or "INFO"),
            security=SecurityConfig(
                cors_allowed_origins=cors_allowed_origins,
                request_max_bytes=_env_int("REQUEST_MAX_BYTES", 1024 * 1024),
                login_rate_limit_max_attempts=_env_int("LOGIN_RATE_LIMIT_MAX_ATTEMPTS", 5),
                login_rate_limit_window_seconds=_env_int(
                    "LOGIN_RATE_LIMIT_WINDOW_SECONDS", 300
                ),
                login_rate_limit_lock_seconds=_env_int("LOGIN_RATE_LIMIT_LOCK_SECONDS", 600),
                state_db_path=os.getenv("STATE_DB_PATH", "").strip()
                or "runtime/app_state.db",
            ),
        )
