"""FastAPI router for patient endpoints."""

from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, Depends

from wellness_portal.api.contracts import (
    ApiEnvelope,
    GoalRequest,
    PatientProfileUpdateRequest,
    success,
)
from wellness_portal.api.errors import MessageCode
from wellness_portal.auth.models import AccessClaims
from wellness_portal.patients.service import PatientService

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"model": ApiEnvelope} for code in (400, 401, 404)
}


def create_patient_router(
    service: PatientService, active_claims: Callable[..., AccessClaims]
) -> APIRouter:
    """Build the ``/api/patients`` router plus the public health-tip endpoint."""
    router = APIRouter(tags=["patients"], responses=ERROR_RESPONSES)

    @router.get("/api/patients/profile", response_model=ApiEnvelope)
    def get_profile(claims: AccessClaims = Depends(active_claims)) -> dict[str, Any]:
        patient = service.get_profile(claims.user_id)
        return success(MessageCode.PATIENT_PROFILE_RETRIEVED, {"patient": patient})

    @router.put("/api/patients/profile", response_model=ApiEnvelope)
    def update_profile(
        req: PatientProfileUpdateRequest,
        claims: AccessClaims = Depends(active_claims),
    ) -> dict[str, Any]:
        """Update whitelisted profile fields; other keys are ignored."""
        patient = service.update_profile(claims.user_id, req.updates())
        return success(MessageCode.PATIENT_PROFILE_UPDATED, {"patient": patient})

    @router.get("/api/patients/goals", response_model=ApiEnvelope)
    def list_goals(claims: AccessClaims = Depends(active_claims)) -> dict[str, Any]:
        return success(MessageCode.GOALS_RETRIEVED, {"goals": service.list_goals(claims.user_id)})

    @router.post("/api/patients/goals", response_model=ApiEnvelope)
    def save_goal(
        req: GoalRequest,
        claims: AccessClaims = Depends(active_claims),
    ) -> dict[str, Any]:
        goal = service.save_goal(claims.user_id, req)
        return success(MessageCode.GOAL_SAVED, {"goal": goal})

    @router.get("/api/patients/reminders", response_model=ApiEnvelope)
    def list_reminders(claims: AccessClaims = Depends(active_claims)) -> dict[str, Any]:
        reminders = service.list_reminders(claims.user_id)
        return success(MessageCode.REMINDERS_RETRIEVED, {"reminders": reminders})

    @router.get("/api/health-tips", response_model=ApiEnvelope)
    def health_tip() -> dict[str, Any]:
        """Public: today's wellness tip."""
        return success(MessageCode.HEALTH_TIP_RETRIEVED, {"tip": service.health_tip()})

    return router
