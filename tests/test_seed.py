from __future__ import annotations

from datetime import date
from pathlib import Path

from wellness_portal.core.security import verify_password
from wellness_portal.storage.document_store import JsonFileDocumentStore
from wellness_portal.storage.seed import DEMO_PASSWORD, DEMO_PATIENT_ID, seed_store

TODAY = date(2024, 5, 1)


def test_seed_check_mode_writes_nothing(tmp_path: Path) -> None:
    store = JsonFileDocumentStore(tmp_path)

    counts = seed_store(store, TODAY, dry_run=True)

    assert counts["users"] == 2
    assert list(tmp_path.iterdir()) == []


def test_seed_is_idempotent_and_links_provider_to_patient(tmp_path: Path) -> None:
    store = JsonFileDocumentStore(tmp_path)

    first = seed_store(store, TODAY)
    second = seed_store(store, TODAY)

    assert first["goals"] == 2
    assert set(second.values()) == {0}
    [provider] = store.read_all("providers")
    assert provider["assignedPatients"] == [DEMO_PATIENT_ID]
    users = {row["email"]: row for row in store.read_all("users")}
    assert verify_password(DEMO_PASSWORD, users["patient@example.com"]["passwordDigest"])
    assert store.read_all("healthTips")[0]["date"] == "2024-05-01"


def test_seed_skips_users_whose_email_is_taken_and_their_records(tmp_path: Path) -> None:
    store = JsonFileDocumentStore(tmp_path)
    store.replace_all("users", [{"id": "real", "email": "patient@example.com"}])

    counts = seed_store(store, TODAY)

    assert counts["users"] == 1
    assert len(store.read_all("users")) == 2
    for collection in ("patients", "providers", "goals", "reminders", "complianceRecords"):
        assert counts[collection] == 0
        assert store.read_all(collection) == []
    assert counts["healthTips"] == 1


def test_seed_fills_missing_records_for_existing_demo_users(tmp_path: Path) -> None:
    store = JsonFileDocumentStore(tmp_path)
    seed_store(store, TODAY)
    store.replace_all("goals", [])

    counts = seed_store(store, TODAY)

    assert counts["goals"] == 2
    assert counts["users"] == 0
