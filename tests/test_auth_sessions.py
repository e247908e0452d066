from __future__ import annotations

from pathlib import Path

import pytest

from wellness_portal.api.errors import ApiError, MessageCode
from wellness_portal.auth.models import Role, User
from wellness_portal.auth.repository import AuthRepository
from wellness_portal.auth.sessions import SessionManager
from wellness_portal.core.config import AuthConfig
from wellness_portal.core.security import sign_token, verify_token
from wellness_portal.storage.document_store import JsonFileDocumentStore

CONFIG = AuthConfig(secret_key="sessions-test-secret", issuer="sessions-test")


def _build(tmp_path: Path) -> tuple[SessionManager, AuthRepository, User]:
    repo = AuthRepository(JsonFileDocumentStore(tmp_path))
    user = User(
        id="u1",
        email="a@x.com",
        password_digest="digest",
        name="Ann",
        role=Role.PROVIDER,
        created_at="2024-01-01T00:00:00.000Z",
    )
    repo.create_user(user)
    return SessionManager(repo, CONFIG), repo, user


def test_issue_persists_refresh_record_and_signs_claims(tmp_path: Path) -> None:
    sessions, repo, user = _build(tmp_path)

    pair = sessions.issue(user)

    assert [record.token for record in repo.list_refresh_tokens("u1")] == [pair.refresh_token]
    claims = sessions.verify_access_token(pair.access_token)
    assert claims is not None
    assert (claims.user_id, claims.email, claims.role) == ("u1", "a@x.com", "provider")
    refresh_claims = verify_token(pair.refresh_token, CONFIG.secret_key)
    assert refresh_claims is not None
    assert refresh_claims["type"] == "refresh"
    assert refresh_claims["exp"] - refresh_claims["iat"] == CONFIG.refresh_token_ttl_seconds


def test_tokens_issued_in_same_second_are_distinct(tmp_path: Path) -> None:
    sessions, _, user = _build(tmp_path)

    first = sessions.issue(user)
    second = sessions.issue(user)

    assert first.access_token != second.access_token
    assert first.refresh_token != second.refresh_token


def test_refresh_token_is_not_an_access_token(tmp_path: Path) -> None:
    sessions, _, user = _build(tmp_path)
    pair = sessions.issue(user)

    assert sessions.verify_access_token(pair.refresh_token) is None
    with pytest.raises(ApiError) as exc:
        sessions.rotate(pair.access_token)
    assert exc.value.message_code == MessageCode.INVALID_REFRESH_TOKEN


def test_rotate_is_single_use(tmp_path: Path) -> None:
    sessions, repo, user = _build(tmp_path)
    original = sessions.issue(user)

    rotated = sessions.rotate(original.refresh_token)

    assert rotated.refresh_token != original.refresh_token
    assert [record.token for record in repo.list_refresh_tokens("u1")] == [rotated.refresh_token]
    with pytest.raises(ApiError) as exc:
        sessions.rotate(original.refresh_token)
    assert exc.value.status_code == 401
    assert exc.value.message_code == MessageCode.REFRESH_TOKEN_NOT_FOUND


def test_rotate_rejects_token_from_other_issuer(tmp_path: Path) -> None:
    sessions, _, _ = _build(tmp_path)
    foreign = sign_token(
        {"sub": "u1", "type": "refresh", "iss": "someone-else", "jti": "x"},
        3600,
        CONFIG.secret_key,
    )

    with pytest.raises(ApiError) as exc:
        sessions.rotate(foreign)
    assert exc.value.message_code == MessageCode.INVALID_REFRESH_TOKEN


def test_rotate_for_deleted_user_returns_user_not_found(tmp_path: Path) -> None:
    sessions, repo, user = _build(tmp_path)
    pair = sessions.issue(user)
    JsonFileDocumentStore(tmp_path).replace_all("users", [])

    with pytest.raises(ApiError) as exc:
        sessions.rotate(pair.refresh_token)
    assert exc.value.status_code == 404
    assert exc.value.message_code == MessageCode.USER_NOT_FOUND
    assert repo.find_refresh_token(pair.refresh_token, "u1") is not None


def test_revoke_session_and_revoke_all(tmp_path: Path) -> None:
    sessions, repo, user = _build(tmp_path)
    first = sessions.issue(user)
    second = sessions.issue(user)
    third = sessions.issue(user)

    assert sessions.revoke_session("u1", first.refresh_token) == 1
    assert sessions.revoke_session("u1", first.refresh_token) == 0
    assert {record.token for record in repo.list_refresh_tokens("u1")} == {
        second.refresh_token,
        third.refresh_token,
    }

    assert sessions.revoke_all_sessions("u1") == 2
    assert repo.list_refresh_tokens("u1") == []
