"""HTTP middleware and exception handler wiring for the FastAPI app."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from wellness_portal.api.contracts import failure
from wellness_portal.api.errors import MessageCode, to_error_payload
from wellness_portal.core.config import AppConfig
from wellness_portal.core.logging import correlation_scope
from wellness_portal.storage.errors import StorageError

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
}


def _request_extra(request: Request, status_code: int) -> dict[str, Any]:
    return {"path": request.url.path, "method": request.method, "status_code": status_code}


def register_http_middleware(
    app: FastAPI, *, config: AppConfig, logger: logging.Logger
) -> None:
    """Attach request-size, correlation-id and access-log middleware."""

    @app.middleware("http")
    async def request_size_limit_middleware(request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                parsed_length = int(content_length)
            except ValueError:
                parsed_length = 0
            if parsed_length > config.security.request_max_bytes:
                return JSONResponse(
                    status_code=413,
                    content=failure(
                        MessageCode.REQUEST_TOO_LARGE,
                        "Request size exceeds configured limit "
                        f"({config.security.request_max_bytes} bytes).",
                    ),
                )
        return await call_next(request)

    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        incoming = request.headers.get("x-request-id") or request.headers.get(
            "x-correlation-id"
        )
        with correlation_scope(incoming) as correlation_id:
            response = await call_next(request)
            response.headers["X-Request-ID"] = correlation_id
            for header, value in SECURITY_HEADERS.items():
                response.headers.setdefault(header, value)
            logger.info("request_completed", extra=_request_extra(request, response.status_code))
        return response


def register_exception_handlers(app: FastAPI, *, logger: logging.Logger) -> None:
    """Render every failure as the standard error envelope."""

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        payload = to_error_payload(exc.detail, exc.status_code)
        extra = _request_extra(request, exc.status_code)
        extra["message_code"] = payload["message_code"]
        logger.warning("http_exception", extra=extra)
        return JSONResponse(
            status_code=exc.status_code,
            content=failure(payload["message_code"], payload["message"]),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_exception(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("validation_exception", extra=_request_extra(request, 400))
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else "Malformed request body"
        return JSONResponse(
            status_code=400,
            content=failure(MessageCode.VALIDATION_ERROR, message),
        )

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
        extra = _request_extra(request, 500)
        extra["collection"] = exc.collection
        logger.error("storage_error", exc_info=exc, extra=extra)
        return JSONResponse(
            status_code=500,
            content=failure(MessageCode.STORAGE_ERROR, "Storage is temporarily unavailable"),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unexpected_exception", exc_info=exc, extra=_request_extra(request, 500))
        return JSONResponse(
            status_code=500,
            content=failure(MessageCode.INTERNAL_SERVER_ERROR, "Internal server error"),
        )
