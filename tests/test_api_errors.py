from __future__ import annotations

from wellness_portal.api.contracts import failure, success
from wellness_portal.api.errors import ApiError, MessageCode, to_error_payload


def test_to_error_payload_preserves_structured_detail() -> None:
    payload = to_error_payload(
        {"message_code": "INVALID_TOKEN", "message": "Invalid"},
        401,
    )

    assert payload == {"message_code": "INVALID_TOKEN", "message": "Invalid"}


def test_to_error_payload_normalizes_plain_string() -> None:
    payload = to_error_payload("boom", 500)

    assert payload == {"message_code": "INTERNAL_SERVER_ERROR", "message": "boom"}


def test_to_error_payload_uses_status_fallback_for_unknown_routes() -> None:
    payload = to_error_payload("Not Found", 404)

    assert payload == {"message_code": "NOT_FOUND", "message": "Not Found"}


def test_api_error_exposes_message_code() -> None:
    error = ApiError(
        status_code=409,
        message_code=MessageCode.USER_EXISTS,
        message="User with this email already exists",
    )

    assert error.status_code == 409
    assert error.message_code == MessageCode.USER_EXISTS
    assert error.detail["message_code"] == "USER_EXISTS"


def test_envelope_helpers_use_camel_case_message_code() -> None:
    ok = success(MessageCode.LOGIN_SUCCESS, {"user": {"id": "u1"}})
    err = failure(MessageCode.FORBIDDEN, "nope")

    assert ok["status"] == "success"
    assert ok["messageCode"] == "LOGIN_SUCCESS"
    assert ok["data"] == {"user": {"id": "u1"}}
    assert ok["timestamp"].endswith("Z")
    assert err == {
        "status": "error",
        "messageCode": "FORBIDDEN",
        "data": {"message": "nope"},
        "timestamp": err["timestamp"],
    }
