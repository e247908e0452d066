"""Business logic for provider endpoints.

Every operation checks the caller's role first and then resource ownership:
a provider only sees patients listed in its ``assignedPatients``.
"""

from __future__ import annotations

from typing import Any

from wellness_portal.api.errors import ApiError, MessageCode
from wellness_portal.auth.middleware import require_role
from wellness_portal.auth.models import AccessClaims, Role
from wellness_portal.patients.repository import CareRepository


def compliance_summary(
    compliance_records: list[dict[str, Any]], goals: list[dict[str, Any]]
) -> dict[str, int]:
    """Summarize checkup statuses and goal completion for one patient."""
    statuses = [record.get("status") for record in compliance_records]
    goals_met = sum(1 for goal in goals if _goal_met(goal))
    total_goals = len(goals)
    return {
        "upcomingCheckups": statuses.count("scheduled"),
        "completedCheckups": statuses.count("completed"),
        "missedCheckups": statuses.count("missed"),
        "goalsMetCount": goals_met,
        "totalGoals": total_goals,
        "complianceRate": round(goals_met / total_goals * 100) if total_goals else 0,
    }


def _goal_met(goal: dict[str, Any]) -> bool:
    try:
        return float(goal.get("current") or 0) >= float(goal.get("target"))
    except (TypeError, ValueError):
        return False


class ProviderService:
    """Read access to a provider's assigned patients."""

    def __init__(self, repo: CareRepository) -> None:
        self._repo = repo

    def list_patients(self, claims: AccessClaims) -> list[dict[str, Any]]:
        """Return assigned patients, each with a ``compliance`` summary."""
        require_role(claims, Role.PROVIDER, "Access denied. Provider role required.")
        provider = self._repo.get_provider_by_user(claims.user_id)
        if provider is None:
            raise ApiError(
                status_code=404,
                message_code=MessageCode.PROVIDER_NOT_FOUND,
                message="Provider profile not found",
            )

        patients = self._repo.list_patients(list(provider.get("assignedPatients") or []))
        compliance = self._repo.all_compliance_records()
        goals = self._repo.all_goals()
        return [
            {
                **patient,
                "compliance": compliance_summary(
                    [row for row in compliance if row.get("patientId") == patient["id"]],
                    [row for row in goals if row.get("patientId") == patient["id"]],
                ),
            }
            for patient in patients
        ]

    def patient_details(self, claims: AccessClaims, patient_id: str) -> dict[str, Any]:
        """Return one assigned patient with goals, reminders and compliance records."""
        require_role(claims, Role.PROVIDER, "Access denied. Provider role required.")
        provider = self._repo.get_provider_by_user(claims.user_id)
        if provider is None or patient_id not in (provider.get("assignedPatients") or []):
            raise ApiError(
                status_code=403,
                message_code=MessageCode.FORBIDDEN,
                message="You do not have access to this patient",
            )

        patient = self._repo.get_patient(patient_id)
        if patient is None:
            raise ApiError(
                status_code=404,
                message_code=MessageCode.PATIENT_NOT_FOUND,
                message="Patient not found",
            )
        return {
            "patient": patient,
            "goals": self._repo.list_goals(patient_id),
            "reminders": self._repo.list_reminders(patient_id),
            "complianceRecords": self._repo.list_compliance_records(patient_id),
        }
