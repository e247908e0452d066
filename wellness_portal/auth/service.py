"""Authentication gateway: register, login, refresh, logout, password reset."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from wellness_portal.api.contracts import utc_now_iso
from wellness_portal.api.errors import ApiError, MessageCode
from wellness_portal.auth.models import AccessClaims, Role, TokenPair, User
from wellness_portal.auth.repository import AuthRepository
from wellness_portal.auth.sessions import SessionManager
from wellness_portal.core.config import AuthConfig
from wellness_portal.core.security import hash_password, verify_password
from wellness_portal.patients.repository import CareRepository, empty_patient_profile
from wellness_portal.storage.errors import StorageError

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthResult:
    """Token pair plus the public view of the authenticated user."""

    tokens: TokenPair
    user: dict[str, Any]

    def to_payload(self) -> dict[str, Any]:
        return {**self.tokens.to_payload(), "user": self.user}


def _present(value: str | None) -> bool:
    return bool(value)


class AuthService:
    """Stateless gateway over the session manager, hasher and repositories."""

    def __init__(
        self,
        repo: AuthRepository,
        sessions: SessionManager,
        care_repo: CareRepository,
        config: AuthConfig,
    ) -> None:
        self._repo = repo
        self._sessions = sessions
        self._care_repo = care_repo
        self._config = config

    def register(
        self,
        email: str | None,
        password: str | None,
        name: str | None,
        role: str | None = None,
    ) -> AuthResult:
        """Create an account (and a blank patient profile for patients)."""
        if not (_present(email) and _present(password) and _present(name)):
            raise ApiError(
                status_code=400,
                message_code=MessageCode.MISSING_FIELDS,
                message="Email, password, and name are required",
            )
        try:
            resolved_role = Role(role or Role.PATIENT)
        except ValueError as exc:
            raise ApiError(
                status_code=400,
                message_code=MessageCode.INVALID_ROLE,
                message="Role must be 'patient' or 'provider'",
            ) from exc

        user = User(
            id=uuid.uuid4().hex,
            email=str(email),
            password_digest=hash_password(str(password)),
            name=str(name),
            role=resolved_role,
            created_at=utc_now_iso(),
        )
        if not self._repo.create_user(user):
            raise ApiError(
                status_code=409,
                message_code=MessageCode.USER_EXISTS,
                message="User with this email already exists",
            )
        if user.role == Role.PATIENT:
            try:
                self._care_repo.create_patient_profile(
                    empty_patient_profile(user.id, user.name, user.email)
                )
            except StorageError:
                # Roll back the user row so the email can register again.
                self._repo.delete_user(user.id)
                raise

        tokens = self._sessions.issue(user)
        LOGGER.info("user_registered", extra={"user_id": user.id})
        return AuthResult(tokens=tokens, user=self._summary(user))

    def login(self, email: str | None, password: str | None) -> AuthResult:
        """Check credentials and issue a new token pair.

        Unknown email and wrong password fail identically.
        """
        if not (_present(email) and _present(password)):
            raise ApiError(
                status_code=400,
                message_code=MessageCode.MISSING_CREDENTIALS,
                message="Email and password are required",
            )
        user = self._repo.get_user_by_email(str(email))
        if user is None or not verify_password(str(password), user.password_digest):
            LOGGER.info("login_failed", extra={"message_code": "INVALID_CREDENTIALS"})
            raise ApiError(
                status_code=401,
                message_code=MessageCode.INVALID_CREDENTIALS,
                message="Invalid email or password",
            )
        tokens = self._sessions.issue(user)
        LOGGER.info("login_succeeded", extra={"user_id": user.id})
        return AuthResult(tokens=tokens, user=self._summary(user))

    def me(self, claims: AccessClaims) -> dict[str, Any]:
        """Return the current user's public record."""
        user = self._repo.get_user_by_id(claims.user_id)
        if user is None:
            raise ApiError(
                status_code=404,
                message_code=MessageCode.USER_NOT_FOUND,
                message="User not found",
            )
        return user.public_view()

    def refresh(self, refresh_token: str | None) -> TokenPair:
        if not _present(refresh_token):
            raise ApiError(
                status_code=400,
                message_code=MessageCode.MISSING_REFRESH_TOKEN,
                message="Refresh token is required",
            )
        return self._sessions.rotate(str(refresh_token))

    def logout_session(self, user_id: str, refresh_token: str) -> None:
        """End the session behind one refresh token; unknown tokens are ignored."""
        self._sessions.revoke_session(user_id, refresh_token)

    def logout_all(self, user_id: str) -> None:
        """End every session of the user."""
        self._sessions.revoke_all_sessions(user_id)

    def forgot_password(self, email: str | None, new_password: str | None) -> TokenPair:
        """Reset the password by email and invalidate every existing session.

        Knowing the email is the only proof required; deployments that cannot
        accept that turn the endpoint off with AUTH_PASSWORD_RESET_ENABLED=0.
        """
        if not self._config.password_reset_enabled:
            raise ApiError(
                status_code=403,
                message_code=MessageCode.PASSWORD_RESET_DISABLED,
                message="Password reset is disabled",
            )
        if not (_present(email) and _present(new_password)):
            raise ApiError(
                status_code=400,
                message_code=MessageCode.MISSING_FIELDS,
                message="Email and new password are required",
            )
        user = self._repo.get_user_by_email(str(email))
        if user is None:
            raise ApiError(
                status_code=404,
                message_code=MessageCode.USER_NOT_FOUND,
                message="User not found",
            )

        digest = hash_password(str(new_password))
        self._repo.update_password_digest(user.id, digest)
        self._sessions.revoke_all_sessions(user.id)
        LOGGER.warning("password_reset", extra={"user_id": user.id})
        return self._sessions.issue(user.model_copy(update={"password_digest": digest}))

    @staticmethod
    def _summary(user: User) -> dict[str, Any]:
        return {"id": user.id, "email": user.email, "name": user.name, "role": str(user.role)}
