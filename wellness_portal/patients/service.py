"""Business logic for patient self-service endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from wellness_portal.api.contracts import GoalRequest
from wellness_portal.api.errors import ApiError, MessageCode
from wellness_portal.patients.repository import CareRepository

# Goal keys the client may not overwrite through extra fields.
RESERVED_GOAL_KEYS = frozenset({"id", "patientId", "createdAt", "updatedAt"})


def today_utc() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class PatientService:
    """Profile, goals and reminders of the calling patient."""

    def __init__(self, repo: CareRepository) -> None:
        self._repo = repo

    def _patient_for(self, user_id: str) -> dict[str, Any]:
        patient = self._repo.get_patient_by_user(user_id)
        if patient is None:
            raise ApiError(
                status_code=404,
                message_code=MessageCode.PATIENT_NOT_FOUND,
                message="Patient profile not found",
            )
        return patient

    def get_profile(self, user_id: str) -> dict[str, Any]:
        return self._patient_for(user_id)

    def update_profile(self, user_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        """Apply whitelisted profile fields."""
        updated = self._repo.update_patient_by_user(user_id, updates)
        if updated is None:
            raise ApiError(
                status_code=404,
                message_code=MessageCode.PATIENT_NOT_FOUND,
                message="Patient profile not found",
            )
        return updated

    def list_goals(self, user_id: str) -> list[dict[str, Any]]:
        return self._repo.list_goals(self._patient_for(user_id)["id"])

    def save_goal(self, user_id: str, req: GoalRequest) -> dict[str, Any]:
        """Create or update the goal for (type, date); date defaults to today (UTC)."""
        patient = self._patient_for(user_id)
        if not req.type or req.target is None:
            raise ApiError(
                status_code=400,
                message_code=MessageCode.MISSING_FIELDS,
                message="Type and target are required",
            )
        extra = {
            key: value
            for key, value in req.extra_fields().items()
            if key not in RESERVED_GOAL_KEYS
        }
        return self._repo.upsert_goal(
            patient["id"],
            goal_type=req.type,
            date=req.date or today_utc(),
            target=req.target,
            current=req.current,
            unit=req.unit,
            extra=extra,
        )

    def list_reminders(self, user_id: str) -> list[dict[str, Any]]:
        return self._repo.list_reminders(self._patient_for(user_id)["id"])

    def health_tip(self) -> dict[str, Any] | None:
        """Return today's tip, falling back to the most recent one."""
        tips = self._repo.list_health_tips()
        today = today_utc()
        for tip in tips:
            if tip.get("date") == today:
                return tip
        return tips[-1] if tips else None
