"""Repository for patient-facing collections."""

from __future__ import annotations

import uuid
from typing import Any

from wellness_portal.api.contracts import utc_now_iso
from wellness_portal.storage.document_store import DocumentStore

PATIENTS = "patients"
PROVIDERS = "providers"
GOALS = "goals"
REMINDERS = "reminders"
COMPLIANCE = "complianceRecords"
HEALTH_TIPS = "healthTips"


def new_record_id() -> str:
    return uuid.uuid4().hex


def empty_patient_profile(user_id: str, name: str, email: str) -> dict[str, Any]:
    """Build the blank clinical profile created alongside a patient account."""
    now = utc_now_iso()
    return {
        "id": user_id,
        "userId": user_id,
        "name": name,
        "email": email,
        "dateOfBirth": None,
        "phone": None,
        "address": None,
        "allergies": [],
        "currentMedications": [],
        "emergencyContact": {},
        "consentGiven": False,
        "createdAt": now,
        "updatedAt": now,
    }


class CareRepository:
    """Patients, providers and their goals, reminders and compliance records."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def create_patient_profile(self, profile: dict[str, Any]) -> None:
        with self._store.transaction(PATIENTS) as rows:
            rows.append(profile)

    def get_patient_by_user(self, user_id: str) -> dict[str, Any] | None:
        return self._store.find_one(PATIENTS, userId=user_id)

    def get_patient(self, patient_id: str) -> dict[str, Any] | None:
        return self._store.find_one(PATIENTS, id=patient_id)

    def list_patients(self, patient_ids: list[str]) -> list[dict[str, Any]]:
        wanted = set(patient_ids)
        return [row for row in self._store.read_all(PATIENTS) if row.get("id") in wanted]

    def update_patient_by_user(
        self, user_id: str, updates: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Merge ``updates`` into the user's patient profile and stamp ``updatedAt``."""
        with self._store.transaction(PATIENTS) as rows:
            for index, row in enumerate(rows):
                if row.get("userId") == user_id:
                    rows[index] = {**row, **updates, "updatedAt": utc_now_iso()}
                    return rows[index]
        return None

    def get_provider_by_user(self, user_id: str) -> dict[str, Any] | None:
        return self._store.find_one(PROVIDERS, userId=user_id)

    def list_goals(self, patient_id: str) -> list[dict[str, Any]]:
        return self._store.find(GOALS, patientId=patient_id)

    def all_goals(self) -> list[dict[str, Any]]:
        return self._store.read_all(GOALS)

    def upsert_goal(
        self,
        patient_id: str,
        *,
        goal_type: str,
        date: str,
        target: Any,
        current: Any,
        unit: str | None,
        extra: dict[str, Any],
    ) -> dict[str, Any]:
        """Create or update the goal for (patient, type, date)."""
        now = utc_now_iso()
        with self._store.transaction(GOALS) as rows:
            for index, row in enumerate(rows):
                if (
                    row.get("patientId") == patient_id
                    and row.get("type") == goal_type
                    and row.get("date") == date
                ):
                    rows[index] = {
                        **row,
                        "target": target,
                        "current": row.get("current") if current is None else current,
                        "unit": unit or row.get("unit"),
                        **extra,
                        "updatedAt": now,
                    }
                    return rows[index]

            goal = {
                "id": new_record_id(),
                "patientId": patient_id,
                "type": goal_type,
                "target": target,
                "current": current or 0,
                "unit": unit or "units",
                "date": date,
                **extra,
                "createdAt": now,
            }
            rows.append(goal)
            return goal

    def list_reminders(self, patient_id: str) -> list[dict[str, Any]]:
        return self._store.find(REMINDERS, patientId=patient_id)

    def list_compliance_records(self, patient_id: str) -> list[dict[str, Any]]:
        return self._store.find(COMPLIANCE, patientId=patient_id)

    def all_compliance_records(self) -> list[dict[str, Any]]:
        return self._store.read_all(COMPLIANCE)

    def list_health_tips(self) -> list[dict[str, Any]]:
        return self._store.read_all(HEALTH_TIPS)
