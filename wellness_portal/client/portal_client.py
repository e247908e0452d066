"""Synchronous API client that keeps the caller's session alive."""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any

import requests

from wellness_portal.client.single_flight import SingleFlight

LOGGER = logging.getLogger(__name__)


class PortalClientError(RuntimeError):
    """Non-success API response."""

    def __init__(self, status_code: int, message_code: str, message: str) -> None:
        super().__init__(f"{status_code} {message_code}: {message}")
        self.status_code = status_code
        self.message_code = message_code


class SessionExpiredError(PortalClientError):
    """The refresh token was rejected; the user has to log in again."""


def _unwrap(response: requests.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    if response.status_code >= 400 or body.get("status") == "error":
        data = body.get("data")
        message = data.get("message") if isinstance(data, dict) else None
        raise PortalClientError(
            response.status_code,
            str(body.get("messageCode") or f"HTTP_{response.status_code}"),
            str(message or response.reason or ""),
        )
    return body.get("data") or {}


class PortalClient:
    """Client for the portal API with transparent token refresh.

    A 401 on an authenticated call triggers one refresh; concurrent calls that
    hit 401 at the same time share that refresh and are replayed with the new
    access token.
    """

    def __init__(
        self,
        base_url: str,
        *,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = session or requests.Session()
        self._timeout = timeout
        self._tokens_lock = Lock()
        self._access_token = ""
        self._refresh_token = ""
        self._refresher: SingleFlight[str] = SingleFlight(self._refresh_access_token)

    @property
    def access_token(self) -> str:
        with self._tokens_lock:
            return self._access_token

    @property
    def refresh_token(self) -> str:
        with self._tokens_lock:
            return self._refresh_token

    def set_tokens(self, access_token: str, refresh_token: str) -> None:
        with self._tokens_lock:
            self._access_token = access_token
            self._refresh_token = refresh_token

    def clear_tokens(self) -> None:
        self.set_tokens("", "")

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    def _send(self, method: str, path: str, *, token: str = "", **kwargs: Any) -> requests.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return self._http.request(
            method, self._url(path), headers=headers, timeout=self._timeout, **kwargs
        )

    def _store_session(self, data: dict[str, Any]) -> dict[str, Any]:
        self.set_tokens(str(data.get("accessToken") or ""), str(data.get("refreshToken") or ""))
        return data

    def register(
        self, email: str, password: str, name: str, role: str = "patient"
    ) -> dict[str, Any]:
        payload = {"email": email, "password": password, "name": name, "role": role}
        return self._store_session(_unwrap(self._send("POST", "/api/auth/register", json=payload)))

    def login(self, email: str, password: str) -> dict[str, Any]:
        payload = {"email": email, "password": password}
        return self._store_session(_unwrap(self._send("POST", "/api/auth/login", json=payload)))

    def logout(self, *, all_sessions: bool = False) -> None:
        body: dict[str, Any] = {"allSessions": all_sessions}
        if not all_sessions:
            body["refreshToken"] = self.refresh_token
        try:
            self.request("POST", "/api/auth/logout", json=body)
        finally:
            self.clear_tokens()

    def _refresh_access_token(self) -> str:
        refresh_token = self.refresh_token
        if not refresh_token:
            raise SessionExpiredError(401, "MISSING_REFRESH_TOKEN", "Not logged in")
        response = self._send("POST", "/api/auth/refresh", json={"refreshToken": refresh_token})
        try:
            data = _unwrap(response)
        except PortalClientError as exc:
            LOGGER.warning("token_refresh_failed", extra={"message_code": exc.message_code})
            self.clear_tokens()
            raise SessionExpiredError(exc.status_code, exc.message_code, str(exc)) from exc
        self._store_session(data)
        return str(data.get("accessToken") or "")

    def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Call an authenticated endpoint, refreshing the access token once on 401."""
        token = self.access_token
        response = self._send(method, path, token=token, **kwargs)
        if response.status_code == 401:
            if self.access_token != token:
                # Another caller refreshed while this request was in flight.
                new_token = self.access_token
            else:
                new_token = self._refresher.run(timeout=self._timeout * 2)
            response = self._send(method, path, token=new_token, **kwargs)
        return _unwrap(response)

    def me(self) -> dict[str, Any]:
        return self.request("GET", "/api/auth/me")

    def patient_profile(self) -> dict[str, Any]:
        return self.request("GET", "/api/patients/profile")

    def save_goal(self, goal: dict[str, Any]) -> dict[str, Any]:
        return self.request("POST", "/api/patients/goals", json=goal)

    def assigned_patients(self) -> dict[str, Any]:
        return self.request("GET", "/api/providers/patients")
