from __future__ import annotations

import logging
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wellness_portal.api.contracts import HealthResponse
from wellness_portal.api.http_setup import register_exception_handlers, register_http_middleware
from wellness_portal.audit.sink import AuditSink, create_audit_middleware
from wellness_portal.auth.middleware import (
    create_active_claims_dependency,
    create_auth_middleware,
)
from wellness_portal.auth.rate_limiter import LoginRateLimiter
from wellness_portal.auth.repository import AuthRepository
from wellness_portal.auth.router import create_auth_router
from wellness_portal.auth.service import AuthService
from wellness_portal.auth.sessions import SessionManager
from wellness_portal.core.config import AppConfig
from wellness_portal.core.logging import setup_logging
from wellness_portal.patients.repository import CareRepository
from wellness_portal.patients.router import create_patient_router
from wellness_portal.patients.service import PatientService
from wellness_portal.providers.router import create_provider_router
from wellness_portal.providers.service import ProviderService
from wellness_portal.storage.document_store import DocumentStore, create_document_store

LOGGER = logging.getLogger(__name__)

APP_ROOT = Path(__file__).resolve().parent


def _resolve(path: str) -> Path:
    candidate = Path(path)
    return candidate if candidate.is_absolute() else APP_ROOT / candidate


def create_app(
    config: AppConfig | None = None, store: DocumentStore | None = None
) -> FastAPI:
    """Build the API. Run with ``uvicorn web_api:create_app --factory``."""
    if config is None:
        load_dotenv()
        config = AppConfig.from_env()
        setup_logging(config.logging.level)
    if store is None:
        store = create_document_store(config.storage, APP_ROOT)

    app = FastAPI(title="Wellness Portal API", version="1.0.0")

    auth_repo = AuthRepository(store)
    care_repo = CareRepository(store)
    sessions = SessionManager(auth_repo, config.auth)
    auth_service = AuthService(auth_repo, sessions, care_repo, config.auth)
    login_rate_limiter = LoginRateLimiter(
        database_path=_resolve(config.security.state_db_path),
        max_attempts=config.security.login_rate_limit_max_attempts,
        window_seconds=config.security.login_rate_limit_window_seconds,
        lock_seconds=config.security.login_rate_limit_lock_seconds,
    )

    active_claims = create_active_claims_dependency(auth_repo)
    app.include_router(create_auth_router(auth_service, login_rate_limiter, active_claims))
    app.include_router(create_patient_router(PatientService(care_repo), active_claims))
    app.include_router(create_provider_router(ProviderService(care_repo), active_claims))

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    # Middleware added last runs first: logging -> size limit -> auth -> audit.
    app.middleware("http")(create_audit_middleware(AuditSink(store)))
    app.middleware("http")(create_auth_middleware(sessions))
    register_http_middleware(app, config=config, logger=LOGGER)
    register_exception_handlers(app, logger=LOGGER)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.security.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    @app.on_event("shutdown")
    def close_rate_limiter() -> None:
        login_rate_limiter.close()

    return app
