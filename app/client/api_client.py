from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Iterable, Optional

import httpx

from app.client.token_store import MASTER_ADMIN, TokenStore

logger = logging.getLogger(__name__)

API_PREFIX = "/api"
REFRESH_PATH = "/auth/refresh-token"
# a 401 from these is a real answer, not an expired session
_NO_RETRY_PATHS = frozenset({"/auth/login", "/auth/register", REFRESH_PATH})


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}


class SessionExpired(ApiError):
    def __init__(self, message: str = "Session expired. Please log in again.") -> None:
        super().__init__(401, message)


def _safe_json(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class HotelApiClient:
    """Hotel portal client for the REST API.

    Requests carry the stored access token. A 401 on any endpoint other than
    login/register/refresh triggers one refresh with the stored refresh token
    and one replay of the original request. When that refresh fails, or the
    replay is rejected again, the local session is cleared and
    ``SessionExpired`` is raised.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5002",
        *,
        store: Optional[TokenStore] = None,
        client: Optional[httpx.Client] = None,
        timeout: float = 20.0,
    ) -> None:
        self.store = store or TokenStore()
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HotelApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.store.access_token:
            headers["Authorization"] = f"Bearer {self.store.access_token}"
        return headers

    def _send(self, method: str, path: str, *, json: Any = None, params: Optional[Dict[str, Any]] = None):
        clean_params = {key: value for key, value in (params or {}).items() if value is not None}
        return self._client.request(
            method,
            f"{API_PREFIX}{path}",
            json=json,
            params=clean_params or None,
            headers=self._headers(),
        )

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        response = self._send(method, path, json=json, params=params)
        if response.status_code == 401 and path not in _NO_RETRY_PATHS:
            self._refresh_session()
            response = self._send(method, path, json=json, params=params)
            if response.status_code == 401:
                # the refreshed token was rejected as well
                logger.info("replayed request rejected path=%s", path)
                self.store.clear()
                raise SessionExpired()

        body = _safe_json(response)
        if response.status_code >= 400:
            message = body.get("message") or response.reason_phrase or "Request failed"
            raise ApiError(response.status_code, message, body)
        return body

    def _refresh_session(self) -> None:
        refresh_token = self.store.refresh_token
        if not refresh_token:
            self.store.clear()
            raise SessionExpired()

        response = self._client.post(f"{API_PREFIX}{REFRESH_PATH}", json={"refreshToken": refresh_token})
        tokens = (_safe_json(response).get("data") or {}).get("tokens") or {}
        if response.status_code != 200 or not tokens.get("access_token"):
            logger.info("token refresh failed status=%s", response.status_code)
            self.store.clear()
            raise SessionExpired()
        self.store.set_tokens(tokens["access_token"], tokens["refresh_token"])

    @staticmethod
    def _data(body: Dict[str, Any]) -> Dict[str, Any]:
        return body.get("data") or {}

    # auth

    def login(self, email: str, password: str) -> Dict[str, Any]:
        body = self.request(
            "POST",
            "/auth/login",
            json={"email": email, "password": password, "portal": "hotel"},
        )
        data = self._data(body)
        user = data.get("user") or {}
        if user.get("user_type") == MASTER_ADMIN:
            raise ApiError(403, "Master Admin should use the Master Admin portal")

        tokens = data.get("tokens") or {}
        self.store.set_tokens(tokens["access_token"], tokens["refresh_token"])
        self.store.set_user(user)
        return user

    def logout(self) -> None:
        had_session = bool(self.store.access_token)
        headers = self._headers()
        self.store.clear()
        if not had_session:
            return
        try:
            self._client.post(f"{API_PREFIX}/auth/logout", headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("logout request failed error=%s", exc)

    def profile(self) -> Dict[str, Any]:
        user = self._data(self.request("GET", "/auth/profile")).get("user") or {}
        self.store.set_user(user)
        return user

    def change_password(self, current_password: str, new_password: str) -> str:
        body = self.request(
            "PUT",
            "/auth/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )
        return body.get("message", "")

    def is_authenticated(self) -> bool:
        return self.store.is_authenticated()

    def is_hotel_user(self) -> bool:
        return self.store.is_hotel_user()

    # hotel

    def get_property(self) -> Dict[str, Any]:
        return self._data(self.request("GET", "/hotel/property")).get("property") or {}

    def get_stats(self) -> Dict[str, Any]:
        return self._data(self.request("GET", "/hotel/stats"))

    def list_rooms(self, *, status: Optional[str] = None, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        return self._data(self.request("GET", "/hotel/rooms", params={"status": status, "page": page, "limit": limit}))

    def create_room(self, **fields: Any) -> Dict[str, Any]:
        return self._data(self.request("POST", "/hotel/rooms", json=fields)).get("room") or {}

    def room_availability(self, check_in: date, check_out: date, room_type: Optional[str] = None) -> Dict[str, Any]:
        params = {"check_in": check_in.isoformat(), "check_out": check_out.isoformat(), "room_type": room_type}
        return self._data(self.request("GET", "/hotel/rooms/availability", params=params))

    def list_bookings(self, *, status: Optional[str] = None, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        return self._data(
            self.request("GET", "/hotel/bookings", params={"status": status, "page": page, "limit": limit})
        )

    def create_booking(self, **fields: Any) -> Dict[str, Any]:
        payload = {key: value.isoformat() if isinstance(value, date) else value for key, value in fields.items()}
        return self._data(self.request("POST", "/hotel/bookings", json=payload)).get("booking") or {}

    def update_booking_status(self, booking_id: int, status: str) -> Dict[str, Any]:
        body = self.request("PATCH", f"/hotel/bookings/{booking_id}/status", json={"status": status})
        return self._data(body).get("booking") or {}

    # staff

    def list_users(self, *, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        return self._data(self.request("GET", "/users", params={"page": page, "limit": limit}))

    def list_roles(self) -> Iterable[Dict[str, Any]]:
        return self._data(self.request("GET", "/role-permissions/roles")).get("roles") or []
