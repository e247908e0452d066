"""Pydantic models for the authentication domain."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Role(StrEnum):
    """Portal roles."""

    PATIENT = "patient"
    PROVIDER = "provider"


class User(BaseModel):
    """Persisted user record (``users`` collection)."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    password_digest: str = Field(alias="passwordDigest")
    name: str
    role: Role = Role.PATIENT
    created_at: str = Field(alias="createdAt")

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    def public_view(self) -> dict[str, Any]:
        """Return the user without the password digest."""
        return self.model_dump(by_alias=True, mode="json", exclude={"password_digest"})


class RefreshTokenRecord(BaseModel):
    """Persisted refresh token (``tokens`` collection).

    The set of records for a user is exactly the set of that user's usable
    refresh tokens; revocation deletes records.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    user_id: str = Field(alias="userId")
    token: str
    type: str = "refresh"
    created_at: str = Field(alias="createdAt")
    expires_at: str = Field(alias="expiresAt")

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class AccessClaims(BaseModel):
    """Identity decoded from a verified access token."""

    user_id: str
    email: str
    role: str


class TokenPair(BaseModel):
    """Freshly issued access/refresh token pair."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")

    def to_payload(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)
