"""Shared API error types and helpers."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from fastapi import HTTPException


class MessageCode(StrEnum):
    """Machine-readable outcome identifiers carried in every envelope."""

    # success
    USER_REGISTERED = "USER_REGISTERED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    USER_PROFILE_RETRIEVED = "USER_PROFILE_RETRIEVED"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    LOGOUT_SUCCESS = "LOGOUT_SUCCESS"
    PASSWORD_RESET_SUCCESS = "PASSWORD_RESET_SUCCESS"
    PATIENT_PROFILE_RETRIEVED = "PATIENT_PROFILE_RETRIEVED"
    PATIENT_PROFILE_UPDATED = "PATIENT_PROFILE_UPDATED"
    GOALS_RETRIEVED = "GOALS_RETRIEVED"
    GOAL_SAVED = "GOAL_SAVED"
    REMINDERS_RETRIEVED = "REMINDERS_RETRIEVED"
    HEALTH_TIP_RETRIEVED = "HEALTH_TIP_RETRIEVED"
    PATIENTS_RETRIEVED = "PATIENTS_RETRIEVED"
    PATIENT_DETAILS_RETRIEVED = "PATIENT_DETAILS_RETRIEVED"

    # 400
    MISSING_FIELDS = "MISSING_FIELDS"
    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    MISSING_REFRESH_TOKEN = "MISSING_REFRESH_TOKEN"
    INVALID_ROLE = "INVALID_ROLE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    # 401
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
    REFRESH_TOKEN_NOT_FOUND = "REFRESH_TOKEN_NOT_FOUND"
    # 403
    FORBIDDEN = "FORBIDDEN"
    PASSWORD_RESET_DISABLED = "PASSWORD_RESET_DISABLED"
    # 404
    NOT_FOUND = "NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    PATIENT_NOT_FOUND = "PATIENT_NOT_FOUND"
    PROVIDER_NOT_FOUND = "PROVIDER_NOT_FOUND"
    # 409
    USER_EXISTS = "USER_EXISTS"
    # 413 / 429
    REQUEST_TOO_LARGE = "REQUEST_TOO_LARGE"
    TOO_MANY_ATTEMPTS = "TOO_MANY_ATTEMPTS"
    # 500
    STORAGE_ERROR = "STORAGE_ERROR"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


_FALLBACK_CODES = {
    400: MessageCode.VALIDATION_ERROR,
    401: MessageCode.UNAUTHORIZED,
    403: MessageCode.FORBIDDEN,
    404: MessageCode.NOT_FOUND,
    413: MessageCode.REQUEST_TOO_LARGE,
    429: MessageCode.TOO_MANY_ATTEMPTS,
}


class ApiError(HTTPException):
    """HTTP exception carrying a stable message code."""

    def __init__(
        self, *, status_code: int, message_code: MessageCode, message: str
    ) -> None:
        super().__init__(
            status_code=status_code,
            detail={"message_code": str(message_code), "message": message},
        )
        self.message_code = message_code


def to_error_payload(detail: Any, status_code: int) -> dict[str, str]:
    """Normalize HTTP exception detail into ``message_code`` + ``message``."""
    if isinstance(detail, dict):
        message_code = str(
            detail.get("message_code")
            or _FALLBACK_CODES.get(status_code, MessageCode.INTERNAL_SERVER_ERROR)
        )
        message = str(detail.get("message") or detail.get("detail") or "HTTP error")
        return {"message_code": message_code, "message": message}
    return {
        "message_code": str(
            _FALLBACK_CODES.get(status_code, MessageCode.INTERNAL_SERVER_ERROR)
        ),
        "message": str(detail or "HTTP error"),
    }
