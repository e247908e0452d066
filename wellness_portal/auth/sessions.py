"""Refresh-token session lifecycle: issue, rotate and revoke."""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from wellness_portal.api.errors import ApiError, MessageCode
from wellness_portal.auth.models import AccessClaims, RefreshTokenRecord, TokenPair, User
from wellness_portal.auth.repository import AuthRepository
from wellness_portal.core.config import AuthConfig
from wellness_portal.core.security import sign_token, verify_token

LOGGER = logging.getLogger(__name__)

ACCESS_TYPE = "access"
REFRESH_TYPE = "refresh"


def _iso(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat(timespec="milliseconds")


class SessionManager:
    """Owns refresh-token records and the signing of token pairs."""

    def __init__(self, repo: AuthRepository, config: AuthConfig) -> None:
        self._repo = repo
        self._config = config

    def _sign_pair(self, user: User) -> tuple[TokenPair, RefreshTokenRecord]:
        now_ts = int(time.time())
        access_token = sign_token(
            {
                "sub": user.id,
                "email": user.email,
                "role": str(user.role),
                "type": ACCESS_TYPE,
                "iss": self._config.issuer,
                "jti": uuid.uuid4().hex,
            },
            self._config.access_token_ttl_seconds,
            self._config.secret_key,
            issued_at=now_ts,
        )
        refresh_token = sign_token(
            {
                "sub": user.id,
                "type": REFRESH_TYPE,
                "iss": self._config.issuer,
                "jti": uuid.uuid4().hex,
            },
            self._config.refresh_token_ttl_seconds,
            self._config.secret_key,
            issued_at=now_ts,
        )
        record = RefreshTokenRecord(
            id=uuid.uuid4().hex,
            user_id=user.id,
            token=refresh_token,
            created_at=_iso(now_ts),
            expires_at=_iso(now_ts + self._config.refresh_token_ttl_seconds),
        )
        return TokenPair(access_token=access_token, refresh_token=refresh_token), record

    def _decode(self, token: str, expected_type: str) -> dict[str, Any] | None:
        claims = verify_token(token, self._config.secret_key)
        if claims is None:
            return None
        if claims.get("type") != expected_type or claims.get("iss") != self._config.issuer:
            return None
        if not claims.get("sub"):
            return None
        return claims

    def issue(self, user: User) -> TokenPair:
        """Sign a new token pair for ``user`` and persist its refresh record."""
        pair, record = self._sign_pair(user)
        self._repo.add_refresh_token(record)
        return pair

    def rotate(self, presented_token: str) -> TokenPair:
        """Exchange a refresh token for a new pair; the old token stops working."""
        claims = self._decode(presented_token, REFRESH_TYPE)
        if claims is None:
            LOGGER.info("refresh_rejected", extra={"message_code": "INVALID_REFRESH_TOKEN"})
            raise ApiError(
                status_code=401,
                message_code=MessageCode.INVALID_REFRESH_TOKEN,
                message="Invalid refresh token",
            )
        user_id = str(claims["sub"])

        if self._repo.find_refresh_token(presented_token, user_id) is None:
            LOGGER.info(
                "refresh_rejected",
                extra={"user_id": user_id, "message_code": "REFRESH_TOKEN_NOT_FOUND"},
            )
            raise ApiError(
                status_code=401,
                message_code=MessageCode.REFRESH_TOKEN_NOT_FOUND,
                message="Refresh token not found",
            )

        user = self._repo.get_user_by_id(user_id)
        if user is None:
            raise ApiError(
                status_code=404,
                message_code=MessageCode.USER_NOT_FOUND,
                message="User not found",
            )

        pair, record = self._sign_pair(user)
        # Lookup-and-delete happen under the collection lock: a concurrent
        # rotation of the same token loses here.
        if not self._repo.swap_refresh_token(presented_token, user_id, record):
            LOGGER.info(
                "refresh_rejected",
                extra={"user_id": user_id, "message_code": "REFRESH_TOKEN_NOT_FOUND"},
            )
            raise ApiError(
                status_code=401,
                message_code=MessageCode.REFRESH_TOKEN_NOT_FOUND,
                message="Refresh token not found",
            )
        LOGGER.info("refresh_rotated", extra={"user_id": user_id})
        return pair

    def revoke_session(self, user_id: str, token: str) -> int:
        """Revoke a single refresh token belonging to ``user_id``."""
        removed = self._repo.delete_refresh_token(user_id, token)
        LOGGER.info("sessions_revoked", extra={"user_id": user_id})
        return removed

    def revoke_all_sessions(self, user_id: str) -> int:
        """Revoke every refresh token belonging to ``user_id``."""
        removed = self._repo.delete_user_refresh_tokens(user_id)
        LOGGER.info("sessions_revoked", extra={"user_id": user_id})
        return removed

    def verify_access_token(self, token: str) -> AccessClaims | None:
        """Return the identity in a valid access token, else ``None``."""
        claims = self._decode(token, ACCESS_TYPE)
        if claims is None:
            return None
        return AccessClaims(
            user_id=str(claims["sub"]),
            email=str(claims.get("email") or ""),
            role=str(claims.get("role") or ""),
        )
