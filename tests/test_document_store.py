from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from wellness_portal.core.config import StorageConfig
from wellness_portal.storage.document_store import (
    JsonFileDocumentStore,
    create_document_store,
)


def test_transaction_persists_on_clean_exit(tmp_path: Path) -> None:
    store = JsonFileDocumentStore(tmp_path)

    with store.transaction("users") as rows:
        rows.append({"id": "u1", "email": "a@x.com"})

    assert store.read_all("users") == [{"id": "u1", "email": "a@x.com"}]
    on_disk = json.loads((tmp_path / "users.json").read_text(encoding="utf-8"))
    assert on_disk == [{"id": "u1", "email": "a@x.com"}]


def test_transaction_discards_changes_when_block_raises(tmp_path: Path) -> None:
    store = JsonFileDocumentStore(tmp_path)
    store.replace_all("users", [{"id": "u1"}])

    with pytest.raises(RuntimeError):
        with store.transaction("users") as rows:
            rows.append({"id": "u2"})
            raise RuntimeError("abort")

    assert store.read_all("users") == [{"id": "u1"}]


def test_missing_and_corrupted_collections_read_as_empty(tmp_path: Path) -> None:
    store = JsonFileDocumentStore(tmp_path)
    (tmp_path / "goals.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "reminders.json").write_text('{"id": "r1"}', encoding="utf-8")

    assert store.read_all("patients") == []
    assert store.read_all("goals") == []
    assert store.read_all("reminders") == []


def test_find_matches_every_given_field(tmp_path: Path) -> None:
    store = JsonFileDocumentStore(tmp_path)
    store.replace_all(
        "tokens",
        [
            {"id": "1", "userId": "u1", "token": "a"},
            {"id": "2", "userId": "u1", "token": "b"},
            {"id": "3", "userId": "u2", "token": "a"},
        ],
    )

    assert [row["id"] for row in store.find("tokens", userId="u1")] == ["1", "2"]
    assert store.find_one("tokens", userId="u2", token="a") == {
        "id": "3",
        "userId": "u2",
        "token": "a",
    }
    assert store.find_one("tokens", userId="u2", token="b") is None


def test_concurrent_transactions_do_not_lose_updates(tmp_path: Path) -> None:
    store = JsonFileDocumentStore(tmp_path)

    def append_many(prefix: str) -> None:
        for index in range(20):
            with store.transaction("auditLogs") as rows:
                rows.append({"id": f"{prefix}-{index}"})

    threads = [threading.Thread(target=append_many, args=(name,)) for name in "abcd"]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store.read_all("auditLogs")) == 80


def test_create_document_store_defaults_to_json_files(tmp_path: Path) -> None:
    store = create_document_store(StorageConfig(data_dir="data"), tmp_path)

    assert isinstance(store, JsonFileDocumentStore)
    assert (tmp_path / "data").is_dir()
