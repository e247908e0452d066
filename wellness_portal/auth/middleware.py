"""HTTP middleware that enforces bearer auth on protected API routes."""

from __future__ import annotations

from typing import Callable, Iterable

from fastapi import Depends, Request
from fastapi.responses import JSONResponse

from wellness_portal.api.contracts import failure
from wellness_portal.api.errors import ApiError, MessageCode
from wellness_portal.auth.models import AccessClaims, Role
from wellness_portal.auth.repository import AuthRepository
from wellness_portal.auth.sessions import SessionManager

PUBLIC_PATHS = frozenset(
    {
        "/api/health",
        "/api/health-tips",
        "/api/auth/register",
        "/api/auth/login",
        "/api/auth/refresh",
        "/api/auth/forget-password",
    }
)


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from ``Authorization: Bearer <token>``, or ``""``."""
    parts = (authorization or "").strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return ""
    return parts[1].strip()


def create_auth_middleware(
    sessions: SessionManager, public_paths: Iterable[str] = PUBLIC_PATHS
) -> Callable:
    """Create middleware that verifies access tokens on non-public ``/api/`` paths."""
    open_paths = frozenset(public_paths)

    async def auth_middleware(request: Request, call_next: Callable):
        """Attach verified claims to ``request.state.claims`` or reject with 401."""
        path = request.url.path
        if (
            request.method == "OPTIONS"
            or not path.startswith("/api/")
            or path.rstrip("/") in open_paths
        ):
            return await call_next(request)

        token = extract_bearer_token(request.headers.get("authorization"))
        if not token:
            return JSONResponse(
                status_code=401,
                content=failure(MessageCode.UNAUTHORIZED, "No token provided"),
            )

        claims = sessions.verify_access_token(token)
        if claims is None:
            return JSONResponse(
                status_code=401,
                content=failure(MessageCode.INVALID_TOKEN, "Invalid or expired token"),
            )

        request.state.claims = claims
        return await call_next(request)

    return auth_middleware


def current_claims(request: Request) -> AccessClaims:
    """FastAPI dependency returning the identity set by the auth middleware."""
    claims = getattr(request.state, "claims", None)
    if not isinstance(claims, AccessClaims):
        raise ApiError(
            status_code=401,
            message_code=MessageCode.UNAUTHORIZED,
            message="No token provided",
        )
    return claims


def create_active_claims_dependency(repo: AuthRepository) -> Callable[..., AccessClaims]:
    """Build a dependency that also rejects identities whose user was deleted."""

    def active_claims(claims: AccessClaims = Depends(current_claims)) -> AccessClaims:
        if repo.get_user_by_id(claims.user_id) is None:
            raise ApiError(
                status_code=401,
                message_code=MessageCode.INVALID_TOKEN,
                message="Invalid or expired token",
            )
        return claims

    return active_claims


def require_role(claims: AccessClaims, role: Role, message: str) -> None:
    """Raise 403 unless the caller holds ``role``."""
    if claims.role != role:
        raise ApiError(status_code=403, message_code=MessageCode.FORBIDDEN, message=message)
