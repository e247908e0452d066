"""FastAPI router for provider endpoints."""

from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, Depends

from wellness_portal.api.contracts import ApiEnvelope, success
from wellness_portal.api.errors import MessageCode
from wellness_portal.auth.models import AccessClaims
from wellness_portal.providers.service import ProviderService

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"model": ApiEnvelope} for code in (401, 403, 404)
}


def create_provider_router(
    service: ProviderService, active_claims: Callable[..., AccessClaims]
) -> APIRouter:
    router = APIRouter(prefix="/api/providers", tags=["providers"], responses=ERROR_RESPONSES)

    @router.get("/patients", response_model=ApiEnvelope)
    def list_patients(claims: AccessClaims = Depends(active_claims)) -> dict[str, Any]:
        """List the caller's assigned patients with compliance summaries."""
        patients = service.list_patients(claims)
        return success(MessageCode.PATIENTS_RETRIEVED, {"patients": patients})

    @router.get("/patients/{patient_id}", response_model=ApiEnvelope)
    def patient_details(
        patient_id: str, claims: AccessClaims = Depends(active_claims)
    ) -> dict[str, Any]:
        details = service.patient_details(claims, patient_id)
        return success(MessageCode.PATIENT_DETAILS_RETRIEVED, details)

    return router
