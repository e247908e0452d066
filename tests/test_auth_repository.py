from __future__ import annotations

from pathlib import Path

from wellness_portal.auth.models import RefreshTokenRecord, Role, User
from wellness_portal.auth.repository import AuthRepository
from wellness_portal.storage.document_store import JsonFileDocumentStore


def _user(user_id: str = "u1", email: str = "a@x.com") -> User:
    return User(
        id=user_id,
        email=email,
        password_digest="digest",
        name="Ann",
        role=Role.PATIENT,
        created_at="2024-01-01T00:00:00.000Z",
    )


def _token(token: str, user_id: str = "u1", expires_at: str = "2999-01-01T00:00:00+00:00") -> RefreshTokenRecord:
    return RefreshTokenRecord(
        id=f"id-{token}",
        user_id=user_id,
        token=token,
        created_at="2024-01-01T00:00:00+00:00",
        expires_at=expires_at,
    )


def test_auth_repository_roundtrip_user(tmp_path: Path) -> None:
    store = JsonFileDocumentStore(tmp_path)
    repo = AuthRepository(store)

    assert repo.create_user(_user())

    loaded = repo.get_user_by_email("a@x.com")
    assert loaded is not None
    assert loaded.id == "u1"
    assert loaded.role == Role.PATIENT
    assert store.read_all("users")[0]["passwordDigest"] == "digest"
    assert repo.get_user_by_email("A@X.COM") is None
    assert repo.get_user_by_id("u1") == loaded


def test_create_user_rejects_duplicate_email_without_writing(tmp_path: Path) -> None:
    store = JsonFileDocumentStore(tmp_path)
    repo = AuthRepository(store)
    repo.create_user(_user())
    before = store.read_all("users")

    assert not repo.create_user(_user(user_id="u2"))
    assert store.read_all("users") == before


def test_update_password_digest(tmp_path: Path) -> None:
    repo = AuthRepository(JsonFileDocumentStore(tmp_path))
    repo.create_user(_user())

    assert repo.update_password_digest("u1", "new-digest")
    assert not repo.update_password_digest("missing", "x")
    user = repo.get_user_by_id("u1")
    assert user is not None and user.password_digest == "new-digest"


def test_delete_user(tmp_path: Path) -> None:
    repo = AuthRepository(JsonFileDocumentStore(tmp_path))
    repo.create_user(_user())

    assert repo.delete_user("u1")
    assert not repo.delete_user("u1")
    assert repo.get_user_by_id("u1") is None


def test_refresh_token_lookup_requires_matching_owner(tmp_path: Path) -> None:
    repo = AuthRepository(JsonFileDocumentStore(tmp_path))
    repo.add_refresh_token(_token("t1"))

    assert repo.find_refresh_token("t1", "u1") is not None
    assert repo.find_refresh_token("t1", "u2") is None


def test_swap_refresh_token_succeeds_once(tmp_path: Path) -> None:
    repo = AuthRepository(JsonFileDocumentStore(tmp_path))
    repo.add_refresh_token(_token("t1"))

    assert repo.swap_refresh_token("t1", "u1", _token("t2"))
    assert not repo.swap_refresh_token("t1", "u1", _token("t3"))
    assert [record.token for record in repo.list_refresh_tokens("u1")] == ["t2"]


def test_expired_records_are_pruned_on_write(tmp_path: Path) -> None:
    repo = AuthRepository(JsonFileDocumentStore(tmp_path))
    repo.add_refresh_token(_token("old", expires_at="2000-01-01T00:00:00+00:00"))
    repo.add_refresh_token(_token("fresh"))

    assert [record.token for record in repo.list_refresh_tokens("u1")] == ["fresh"]


def test_delete_refresh_tokens(tmp_path: Path) -> None:
    repo = AuthRepository(JsonFileDocumentStore(tmp_path))
    for token in ("a", "b"):
        repo.add_refresh_token(_token(token))
    repo.add_refresh_token(_token("c", user_id="u2"))

    assert repo.delete_refresh_token("u1", "a") == 1
    assert repo.delete_refresh_token("u1", "c") == 0
    assert repo.delete_user_refresh_tokens("u1") == 1
    assert repo.list_refresh_tokens("u1") == []
    assert [record.token for record in repo.list_refresh_tokens("u2")] == ["c"]
