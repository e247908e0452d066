"""Best-effort audit trail of authenticated requests."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable

from fastapi import Request
from starlette.concurrency import run_in_threadpool

from wellness_portal.api.contracts import utc_now_iso
from wellness_portal.auth.models import AccessClaims
from wellness_portal.storage.document_store import DocumentStore
from wellness_portal.storage.errors import StorageError

LOGGER = logging.getLogger(__name__)

AUDIT_LOGS = "auditLogs"


class AuditSink:
    """Appends request-trail entries to the ``auditLogs`` collection."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def record(
        self,
        *,
        user_id: str,
        action: str,
        resource: str,
        ip_address: str,
        user_agent: str,
    ) -> dict[str, Any] | None:
        """Append one entry; storage failures are logged, never raised."""
        entry = {
            "id": uuid.uuid4().hex,
            "userId": user_id,
            "action": action,
            "resource": resource,
            "timestamp": utc_now_iso(),
            "ipAddress": ip_address,
            "userAgent": user_agent,
        }
        try:
            with self._store.transaction(AUDIT_LOGS) as rows:
                rows.append(entry)
        except StorageError:
            LOGGER.exception("audit_write_failed", extra={"user_id": user_id})
            return None
        return entry


def create_audit_middleware(sink: AuditSink) -> Callable:
    """Create middleware that audits every response to an authenticated request.

    Runs inside the auth middleware and reads the identity it left on
    ``request.state.claims``.
    """

    async def audit_middleware(request: Request, call_next: Callable):
        response = await call_next(request)
        claims = getattr(request.state, "claims", None)
        if not isinstance(claims, AccessClaims):
            return response
        await run_in_threadpool(
            sink.record,
            user_id=claims.user_id,
            action=request.method,
            resource=request.url.path,
            ip_address=(request.client.host if request.client else "") or "unknown",
            user_agent=request.headers.get("user-agent", ""),
        )
        return response

    return audit_middleware
