"""Public API request/response contracts."""

from wellness_portal.api.contracts.models import (
    ApiEnvelope,
    ForgotPasswordRequest,
    GoalRequest,
    HealthResponse,
    LoginRequest,
    LogoutRequest,
    PatientProfileUpdateRequest,
    RefreshRequest,
    RegisterRequest,
    failure,
    success,
    utc_now_iso,
)

__all__ = [
    "ApiEnvelope",
    "ForgotPasswordRequest",
    "GoalRequest",
    "HealthResponse",
    "LoginRequest",
    "LogoutRequest",
    "PatientProfileUpdateRequest",
    "RefreshRequest",
    "RegisterRequest",
    "failure",
    "success",
    "utc_now_iso",
]
