"""Authentication API router."""

from __future__ import annotations

from typing import Any, Callable

from fastapi import APIRouter, Depends, Request

from wellness_portal.api.contracts import (
    ApiEnvelope,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    success,
)
from wellness_portal.api.errors import ApiError, MessageCode
from wellness_portal.auth.middleware import current_claims
from wellness_portal.auth.models import AccessClaims
from wellness_portal.auth.rate_limiter import LoginRateLimiter
from wellness_portal.auth.service import AuthService

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    code: {"model": ApiEnvelope} for code in (400, 401, 403, 404, 409, 429)
}


def _client_ip(request: Request) -> str:
    return (request.client.host if request.client else "") or "unknown"


def create_auth_router(
    service: AuthService,
    rate_limiter: LoginRateLimiter,
    active_claims: Callable[..., AccessClaims],
) -> APIRouter:
    """Build the ``/api/auth`` router."""
    router = APIRouter(prefix="/api/auth", tags=["auth"], responses=ERROR_RESPONSES)

    @router.post("/register", status_code=201, response_model=ApiEnvelope)
    def register(req: RegisterRequest) -> dict[str, Any]:
        """Create an account and return its first token pair."""
        result = service.register(req.email, req.password, req.name, req.role)
        return success(MessageCode.USER_REGISTERED, result.to_payload())

    @router.post("/login", response_model=ApiEnvelope)
    def login(req: LoginRequest, request: Request) -> dict[str, Any]:
        """Authenticate with email and password."""
        client_ip = _client_ip(request)
        email = req.email or ""
        if email:
            rate_limiter.assert_allowed(email=email, client_ip=client_ip)
        try:
            result = service.login(req.email, req.password)
        except ApiError as exc:
            if exc.message_code == MessageCode.INVALID_CREDENTIALS:
                rate_limiter.record_failure(email=email, client_ip=client_ip)
            raise
        rate_limiter.record_success(email=email, client_ip=client_ip)
        return success(MessageCode.LOGIN_SUCCESS, result.to_payload())

    @router.get("/me", response_model=ApiEnvelope)
    def me(claims: AccessClaims = Depends(current_claims)) -> dict[str, Any]:
        return success(MessageCode.USER_PROFILE_RETRIEVED, {"user": service.me(claims)})

    @router.post("/refresh", response_model=ApiEnvelope)
    def refresh(req: RefreshRequest) -> dict[str, Any]:
        """Rotate a refresh token; the presented token cannot be used again."""
        tokens = service.refresh(req.refresh_token)
        return success(MessageCode.TOKEN_REFRESHED, tokens.to_payload())

    @router.post("/logout", response_model=ApiEnvelope)
    def logout(
        req: LogoutRequest | None = None,
        claims: AccessClaims = Depends(active_claims),
    ) -> dict[str, Any]:
        """End one session (``refreshToken`` given) or all of the caller's sessions."""
        body = req or LogoutRequest()
        if body.refresh_token and not body.all_sessions:
            service.logout_session(claims.user_id, body.refresh_token)
        else:
            service.logout_all(claims.user_id)
        return success(MessageCode.LOGOUT_SUCCESS, {"message": "Logged out successfully"})

    @router.post("/forget-password", response_model=ApiEnvelope)
    def forget_password(req: ForgotPasswordRequest) -> dict[str, Any]:
        tokens = service.forgot_password(req.email, req.new_password)
        return success(MessageCode.PASSWORD_RESET_SUCCESS, tokens.to_payload())

    return router
