"""Repository for users and refresh-token records over the document store."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from wellness_portal.auth.models import RefreshTokenRecord, User
from wellness_portal.storage.document_store import DocumentStore

LOGGER = logging.getLogger(__name__)

USERS = "users"
TOKENS = "tokens"


def _parse_iso(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _is_expired(row: dict, now: datetime) -> bool:
    expires_at = _parse_iso(str(row.get("expiresAt") or ""))
    return expires_at is not None and expires_at <= now


class AuthRepository:
    """Users and refresh tokens, one collection each."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def _to_user(self, row: dict | None) -> User | None:
        if row is None:
            return None
        try:
            return User.model_validate(row)
        except ValidationError:
            LOGGER.warning("user_record_invalid", extra={"user_id": str(row.get("id") or "")})
            return None

    def get_user_by_email(self, email: str) -> User | None:
        """Find a user by exact (case-sensitive) email."""
        return self._to_user(self._store.find_one(USERS, email=email))

    def get_user_by_id(self, user_id: str) -> User | None:
        return self._to_user(self._store.find_one(USERS, id=user_id))

    def create_user(self, user: User) -> bool:
        """Insert ``user`` unless the email is taken; return whether it was inserted."""
        with self._store.transaction(USERS) as rows:
            if any(row.get("email") == user.email for row in rows):
                return False
            rows.append(user.to_record())
        return True

    def delete_user(self, user_id: str) -> bool:
        with self._store.transaction(USERS) as rows:
            before = len(rows)
            rows[:] = [row for row in rows if row.get("id") != user_id]
            return len(rows) != before

    def update_password_digest(self, user_id: str, digest: str) -> bool:
        with self._store.transaction(USERS) as rows:
            for row in rows:
                if row.get("id") == user_id:
                    row["passwordDigest"] = digest
                    return True
        return False

    def find_refresh_token(self, token: str, user_id: str) -> RefreshTokenRecord | None:
        """Return the record matching both the token string and its owner."""
        row = self._store.find_one(TOKENS, token=token, userId=user_id)
        return RefreshTokenRecord.model_validate(row) if row else None

    def list_refresh_tokens(self, user_id: str) -> list[RefreshTokenRecord]:
        return [
            RefreshTokenRecord.model_validate(row)
            for row in self._store.find(TOKENS, userId=user_id)
        ]

    def add_refresh_token(self, record: RefreshTokenRecord) -> None:
        """Persist ``record`` and drop any records that have already expired."""
        now = datetime.now(timezone.utc)
        with self._store.transaction(TOKENS) as rows:
            rows[:] = [row for row in rows if not _is_expired(row, now)]
            rows.append(record.to_record())

    def swap_refresh_token(
        self, old_token: str, user_id: str, replacement: RefreshTokenRecord
    ) -> bool:
        """Replace ``old_token`` with ``replacement`` in one write.

        Returns False without writing when ``old_token`` is no longer present,
        so of two concurrent swaps of the same token only one succeeds.
        """
        now = datetime.now(timezone.utc)
        with self._store.transaction(TOKENS) as rows:
            remaining = [
                row
                for row in rows
                if not (row.get("token") == old_token and row.get("userId") == user_id)
            ]
            if len(remaining) == len(rows):
                return False
            rows[:] = [row for row in remaining if not _is_expired(row, now)]
            rows.append(replacement.to_record())
        return True

    def delete_refresh_token(self, user_id: str, token: str) -> int:
        """Delete one of the user's refresh tokens; return how many were removed."""
        with self._store.transaction(TOKENS) as rows:
            before = len(rows)
            rows[:] = [
                row
                for row in rows
                if not (row.get("userId") == user_id and row.get("token") == token)
            ]
            return before - len(rows)

    def delete_user_refresh_tokens(self, user_id: str) -> int:
        """Delete every refresh token owned by the user."""
        with self._store.transaction(TOKENS) as rows:
            before = len(rows)
            rows[:] = [row for row in rows if row.get("userId") != user_id]
            return before - len(rows)
