from __future__ import annotations

from fastapi.routing import APIRoute

from wellness_portal.core.config import AppConfig
from wellness_portal.storage.document_store import JsonFileDocumentStore
from web_api import create_app


def _schema(app_config: AppConfig, store: JsonFileDocumentStore) -> dict:
    return create_app(config=app_config, store=store).openapi()


def test_health_endpoint_contract_function(
    app_config: AppConfig, store: JsonFileDocumentStore
) -> None:
    app = create_app(config=app_config, store=store)
    route = next(
        (
            candidate
            for candidate in app.routes
            if isinstance(candidate, APIRoute) and candidate.path == "/api/health"
        ),
        None,
    )

    assert route is not None
    payload = route.endpoint()
    assert payload.model_dump() == {"status": "ok"}


def test_openapi_declares_envelope_for_auth_routes(
    app_config: AppConfig, store: JsonFileDocumentStore
) -> None:
    schema = _schema(app_config, store)

    register = schema["paths"]["/api/auth/register"]["post"]
    assert register["responses"]["201"]["content"]["application/json"]["schema"][
        "$ref"
    ].endswith("ApiEnvelope")

    login = schema["paths"]["/api/auth/login"]["post"]
    assert login["responses"]["429"]["content"]["application/json"]["schema"][
        "$ref"
    ].endswith("ApiEnvelope")


def test_openapi_lists_business_routes(
    app_config: AppConfig, store: JsonFileDocumentStore
) -> None:
    paths = _schema(app_config, store)["paths"]

    assert set(paths["/api/patients/profile"]) == {"get", "put"}
    assert set(paths["/api/patients/goals"]) == {"get", "post"}
    assert "get" in paths["/api/providers/patients/{patient_id}"]
    assert "get" in paths["/api/health-tips"]
