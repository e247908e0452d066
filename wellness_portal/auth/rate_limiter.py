"""Login brute-force protection backed by SQLite state."""

from __future__ import annotations

import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from threading import Lock

from wellness_portal.api.errors import ApiError, MessageCode
from wellness_portal.core.migrations.runner import apply_migrations


@dataclass(frozen=True)
class _Attempts:
    failures: int
    window_started_at: int
    locked_until: int


def _key(email: str, client_ip: str) -> tuple[str, str]:
    return email.strip().lower(), client_ip.strip() or "unknown"


class LoginRateLimiter:
    """Lock out an (email, client ip) pair after repeated failed logins.

    Failures count for unknown emails too, so a lockout says nothing about
    whether the account exists.
    """

    def __init__(
        self,
        *,
        database_path: Path,
        max_attempts: int,
        window_seconds: int,
        lock_seconds: int,
    ) -> None:
        apply_migrations(database_path)
        self._db = sqlite3.connect(str(database_path), check_same_thread=False)
        self._guard = Lock()
        self._max_attempts = max(1, int(max_attempts))
        self._window_seconds = max(1, int(window_seconds))
        self._lock_seconds = max(1, int(lock_seconds))

    def _load(self, key: tuple[str, str]) -> _Attempts | None:
        row = self._db.execute(
            "SELECT failed_attempts, first_failed_at, locked_until "
            "FROM auth_login_attempts WHERE email = ? AND client_ip = ?",
            key,
        ).fetchone()
        if row is None:
            return None
        return _Attempts(*(int(value or 0) for value in row))

    def _forget(self, key: tuple[str, str]) -> None:
        self._db.execute(
            "DELETE FROM auth_login_attempts WHERE email = ? AND client_ip = ?", key
        )
        self._db.commit()

    def _window_expired(self, attempts: _Attempts, now: int) -> bool:
        started = attempts.window_started_at
        return bool(started) and now - started > self._window_seconds

    def assert_allowed(self, *, email: str, client_ip: str, now: int | None = None) -> None:
        """Raise 429 while the pair is locked out."""
        current = int(time.time()) if now is None else now
        key = _key(email, client_ip)
        with self._guard:
            attempts = self._load(key)
            if attempts is None:
                return
            if attempts.locked_until > current:
                wait = attempts.locked_until - current
                raise ApiError(
                    status_code=429,
                    message_code=MessageCode.TOO_MANY_ATTEMPTS,
                    message=f"Too many login attempts. Retry after {wait} seconds.",
                )
            if self._window_expired(attempts, current):
                self._forget(key)

    def record_success(self, *, email: str, client_ip: str) -> None:
        with self._guard:
            self._forget(_key(email, client_ip))

    def record_failure(self, *, email: str, client_ip: str, now: int | None = None) -> None:
        """Count a failed login and start a lockout once the threshold is hit."""
        current = int(time.time()) if now is None else now
        key = _key(email, client_ip)
        with self._guard:
            previous = self._load(key)
            if previous is None or self._window_expired(previous, current):
                failures, started = 1, current
            else:
                failures = previous.failures + 1
                started = previous.window_started_at or current
            locked_until = current + self._lock_seconds if failures >= self._max_attempts else 0
            self._db.execute(
                "INSERT OR REPLACE INTO auth_login_attempts("
                "email, client_ip, failed_attempts, first_failed_at, last_failed_at, locked_until"
                ") VALUES (?, ?, ?, ?, ?, ?)",
                (*key, failures, started, current, locked_until),
            )
            self._db.commit()

    def close(self) -> None:
        with self._guard:
            self._db.close()
