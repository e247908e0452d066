"""Security primitives for credential hashing and bearer token signing."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import time
from typing import Any

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

TOKEN_HEADER = {"alg": "HS256", "typ": "JWT"}
# Keys added by ``sign_token``; callers comparing claims usually drop them.
BOOKKEEPING_CLAIMS = frozenset({"iat", "exp"})

_password_hasher = PasswordHasher(type=Type.ID)


def hash_password(password: str) -> str:
    """Hash a plaintext password with salted argon2id."""
    return _password_hasher.hash(password)


def verify_password(password: str, digest: str) -> bool:
    """Check a plaintext password against a stored argon2 digest."""
    try:
        return _password_hasher.verify(digest, password)
    except (VerificationError, InvalidHashError):
        return False


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _b64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode((value + padding).encode("ascii"))


def _signature(signing_input: bytes, secret_key: str) -> bytes:
    return hmac.new(secret_key.encode("utf-8"), signing_input, hashlib.sha256).digest()


def sign_token(
    claims: dict[str, Any],
    ttl_seconds: int,
    secret_key: str,
    *,
    issued_at: int | None = None,
) -> str:
    """Sign ``claims`` into a compact HS256 token expiring after ``ttl_seconds``."""
    iat = int(time.time()) if issued_at is None else int(issued_at)
    payload = {**claims, "iat": iat, "exp": iat + int(ttl_seconds)}
    header_part = _b64url_encode(json.dumps(TOKEN_HEADER, separators=(",", ":")).encode("utf-8"))
    payload_part = _b64url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_part}.{payload_part}".encode("ascii")
    return f"{header_part}.{payload_part}.{_b64url_encode(_signature(signing_input, secret_key))}"


def verify_token(
    token: str, secret_key: str, *, now: int | None = None
) -> dict[str, Any] | None:
    """Return the token claims, or ``None`` if the token is unusable.

    Malformed input, a bad signature, an unreadable payload and expiry all
    yield ``None``; callers cannot tell these apart.
    """
    if not token or token.count(".") != 2:
        return None
    header_part, payload_part, signature_part = token.split(".")
    signing_input = f"{header_part}.{payload_part}".encode("ascii", errors="replace")
    try:
        presented = _b64url_decode(signature_part)
        claims = json.loads(_b64url_decode(payload_part).decode("utf-8"))
    except (binascii.Error, ValueError, UnicodeError):
        return None
    if not hmac.compare_digest(_signature(signing_input, secret_key), presented):
        return None
    if not isinstance(claims, dict):
        return None

    try:
        expires_at = int(claims.get("exp") or 0)
    except (TypeError, ValueError):
        return None
    current = int(time.time()) if now is None else int(now)
    if expires_at <= current:
        return None
    return claims


def strip_bookkeeping(claims: dict[str, Any]) -> dict[str, Any]:
    """Drop ``iat``/``exp`` so decoded claims compare equal to signed ones."""
    return {key: value for key, value in claims.items() if key not in BOOKKEEPING_CLAIMS}
