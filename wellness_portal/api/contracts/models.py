"""Pydantic request and response models used in OpenAPI contracts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def utc_now_iso() -> str:
    """Return the current UTC time as ISO-8601 with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


class ApiEnvelope(BaseModel):
    """Envelope wrapping every API response, successful or not."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["success", "error"]
    message_code: str = Field(alias="messageCode", description="Machine-readable outcome")
    data: dict[str, Any] | None = None
    timestamp: str = Field(default_factory=utc_now_iso)

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def success(message_code: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a success envelope as a plain dict."""
    return ApiEnvelope(status="success", message_code=str(message_code), data=data).to_json()


def failure(message_code: str, message: str) -> dict[str, Any]:
    """Build an error envelope as a plain dict."""
    return ApiEnvelope(
        status="error", message_code=str(message_code), data={"message": message}
    ).to_json()


class HealthResponse(BaseModel):
    """Health check response payload."""

    status: Literal["ok"]


class RegisterRequest(BaseModel):
    """Registration payload; presence is checked by the service, not here."""

    email: str | None = None
    password: str | None = None
    name: str | None = None
    role: str | None = None


class LoginRequest(BaseModel):
    """Login request payload."""

    email: str | None = None
    password: str | None = None


class RefreshRequest(BaseModel):
    """Refresh request payload."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str | None = Field(default=None, alias="refreshToken")


class LogoutRequest(BaseModel):
    """Logout request payload."""

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str | None = Field(default=None, alias="refreshToken")
    all_sessions: bool = Field(default=False, alias="allSessions")


class ForgotPasswordRequest(BaseModel):
    """Password reset payload."""

    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    new_password: str | None = Field(default=None, alias="newPassword")


class PatientProfileUpdateRequest(BaseModel):
    """Whitelisted patient profile fields; unknown keys are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = None
    date_of_birth: str | None = Field(default=None, alias="dateOfBirth")
    phone: str | None = None
    address: Any = None
    allergies: list[Any] | None = None
    current_medications: list[Any] | None = Field(default=None, alias="currentMedications")
    emergency_contact: dict[str, Any] | None = Field(default=None, alias="emergencyContact")
    consent_given: bool | None = Field(default=None, alias="consentGiven")

    def updates(self) -> dict[str, Any]:
        """Return only the fields the client actually sent, keyed as stored."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class GoalRequest(BaseModel):
    """Goal upsert payload; extra keys are stored alongside the goal."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None
    target: int | float | None = None
    current: int | float | None = None
    unit: str | None = None
    date: str | None = None

    def extra_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})
