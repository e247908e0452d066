"""Demo data for local development: one patient, one provider and their records."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from wellness_portal.api.contracts import utc_now_iso
from wellness_portal.core.security import hash_password
from wellness_portal.patients.repository import empty_patient_profile
from wellness_portal.storage.document_store import DocumentStore

DEMO_PASSWORD = "password123"
DEMO_PATIENT_ID = "demo-patient-1"
DEMO_PROVIDER_ID = "demo-provider-1"


def build_demo_records(today: date) -> dict[str, list[dict[str, Any]]]:
    """Return demo records keyed by collection name."""
    now = utc_now_iso()
    day = today.isoformat()
    patient = empty_patient_profile(DEMO_PATIENT_ID, "Pat Example", "patient@example.com")
    patient.update({"dateOfBirth": "1990-04-12", "consentGiven": True})
    return {
        "users": [
            {
                "id": DEMO_PATIENT_ID,
                "email": "patient@example.com",
                "passwordDigest": hash_password(DEMO_PASSWORD),
                "name": "Pat Example",
                "role": "patient",
                "createdAt": now,
            },
            {
                "id": DEMO_PROVIDER_ID,
                "email": "provider@example.com",
                "passwordDigest": hash_password(DEMO_PASSWORD),
                "name": "Dr. Example",
                "role": "provider",
                "createdAt": now,
            },
        ],
        "patients": [patient],
        "providers": [
            {
                "id": DEMO_PROVIDER_ID,
                "userId": DEMO_PROVIDER_ID,
                "name": "Dr. Example",
                "specialization": "General Practice",
                "assignedPatients": [DEMO_PATIENT_ID],
            }
        ],
        "goals": [
            {
                "id": "demo-goal-steps",
                "patientId": DEMO_PATIENT_ID,
                "type": "steps",
                "target": 8000,
                "current": 5200,
                "unit": "steps",
                "date": day,
                "createdAt": now,
            },
            {
                "id": "demo-goal-water",
                "patientId": DEMO_PATIENT_ID,
                "type": "water",
                "target": 8,
                "current": 8,
                "unit": "glasses",
                "date": day,
                "createdAt": now,
            },
        ],
        "reminders": [
            {
                "id": "demo-reminder-bloodwork",
                "patientId": DEMO_PATIENT_ID,
                "title": "Annual blood test",
                "date": (today + timedelta(days=14)).isoformat(),
                "type": "checkup",
            }
        ],
        "complianceRecords": [
            {
                "id": "demo-compliance-1",
                "patientId": DEMO_PATIENT_ID,
                "type": "checkup",
                "status": "completed",
                "date": (today - timedelta(days=30)).isoformat(),
            },
            {
                "id": "demo-compliance-2",
                "patientId": DEMO_PATIENT_ID,
                "type": "checkup",
                "status": "scheduled",
                "date": (today + timedelta(days=14)).isoformat(),
            },
        ],
        "healthTips": [
            {
                "id": "demo-tip-1",
                "date": day,
                "tip": "Take a ten minute walk after lunch.",
            }
        ],
    }


def _owner_id(collection: str, record: dict[str, Any]) -> str | None:
    if collection == "users":
        return record["id"]
    if collection in ("patients", "providers"):
        return record.get("userId")
    if collection in ("goals", "reminders", "complianceRecords"):
        return record.get("patientId")
    return None


def _depends_on(collection: str, record: dict[str, Any], user_ids: set[str]) -> bool:
    if _owner_id(collection, record) in user_ids:
        return True
    return collection == "providers" and bool(user_ids & set(record.get("assignedPatients", [])))


def seed_store(
    store: DocumentStore, today: date, *, dry_run: bool = False
) -> dict[str, int]:
    """Insert demo records whose ``id`` is not present yet; return counts per collection.

    Demo users whose email is registered under another id are skipped, with
    every demo record that belongs to or references them.
    """
    records_by_collection = build_demo_records(today)
    email_owners = {row.get("email"): row.get("id") for row in store.read_all("users")}
    skipped_users = {
        user["id"]
        for user in records_by_collection["users"]
        if email_owners.get(user["email"], user["id"]) != user["id"]
    }

    inserted: dict[str, int] = {}
    for collection, records in records_by_collection.items():
        known_ids = {row.get("id") for row in store.read_all(collection)}
        fresh = [
            record
            for record in records
            if record["id"] not in known_ids and not _depends_on(collection, record, skipped_users)
        ]
        inserted[collection] = len(fresh)
        if dry_run or not fresh:
            continue
        with store.transaction(collection) as rows:
            rows.extend(fresh)
    return inserted
