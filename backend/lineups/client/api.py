"""HTTP client for the lineups API.

Wraps an `httpx.Client` (a FastAPI TestClient works too). Every call except
register / login / refresh sends the bearer token from the AuthSession. A
401 triggers exactly one refresh followed by one replay of the original
request; if that fails as well the session is cleared and
AuthenticationRequired is raised so the UI can send the user to login.
"""

import logging
from typing import Any, Optional

import httpx

from lineups.client.session import AuthSession

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, detail: Any = None):
        super().__init__(f"API error {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class NotFoundError(ApiError):
    pass


class AuthenticationRequired(ApiError):
    def __init__(self, detail: Any = "Authentication required"):
        super().__init__(401, detail)


def _detail(response: httpx.Response) -> Any:
    try:
        return response.json().get("detail")
    except (ValueError, AttributeError):
        return response.text


class CompositionApiClient:
    def __init__(self, http: httpx.Client, auth: AuthSession):
        self.http = http
        self.auth = auth

    # ── Plumbing ────────────────────────────────────────────────────────────

    def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        headers.update(self.auth.auth_header())
        return self.http.request(method, url, headers=headers, **kwargs)

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        response = self._send(method, url, **kwargs)
        if response.status_code == 401:
            if not self.auth.refresh_token:
                self.auth.clear()
                raise AuthenticationRequired(_detail(response))
            try:
                self.refresh()
            except ApiError as exc:
                logger.warning(f"Token refresh failed: {exc}")
                self.auth.clear()
                raise AuthenticationRequired(exc.detail) from exc
            response = self._send(method, url, **kwargs)
            if response.status_code == 401:
                self.auth.clear()
                raise AuthenticationRequired(_detail(response))
        return self._check(response)

    @staticmethod
    def _check(response: httpx.Response) -> httpx.Response:
        if response.status_code == 404:
            raise NotFoundError(404, _detail(response))
        if response.status_code >= 400:
            raise ApiError(response.status_code, _detail(response))
        return response

    # ── Auth ────────────────────────────────────────────────────────────────

    def register(self, email: str, password: str, username: Optional[str] = None) -> dict:
        body = {"email": email, "password": password}
        if username:
            body["username"] = username
        return self._check(self.http.post("/auth/register", json=body)).json()

    def login(self, email: str, password: str) -> None:
        data = self._check(self.http.post("/auth/login", json={"email": email, "password": password})).json()
        self.auth.update(data["token"], data["refreshToken"])

    def refresh(self) -> None:
        response = self.http.post("/auth/refresh", json={"refreshToken": self.auth.refresh_token})
        data = self._check(response).json()
        self.auth.update(data["token"], data["refreshToken"])

    def logout(self) -> None:
        self.auth.clear()

    # ── Profile ─────────────────────────────────────────────────────────────

    def get_profile(self) -> dict:
        return self._request("GET", "/profile").json()

    def update_profile(self, current_password: str, **fields) -> None:
        body = {"currentPassword": current_password}
        for key in ("username", "email", "newPassword"):
            if fields.get(key) is not None:
                body[key] = fields[key]
        data = self._request("PUT", "/profile", json=body).json()
        self.auth.access_token = data["token"]

    # ── Compositions ────────────────────────────────────────────────────────

    def list_compositions(self) -> list[dict]:
        return self._request("GET", "/compositions").json()

    def get_composition(self, composition_id: int) -> dict:
        return self._request("GET", f"/compositions/{composition_id}").json()

    def create_composition(self, draft: dict) -> dict:
        return self._request("POST", "/compositions", json=draft).json()

    def update_composition(self, composition_id: int, draft: dict) -> None:
        self._request("PUT", f"/compositions/{composition_id}", json=draft)

    def set_favorite(self, composition_id: int, is_favorite: bool) -> dict:
        return self._request(
            "PATCH", f"/compositions/{composition_id}/favorite", json={"isFavorite": is_favorite}
        ).json()

    def delete_composition(self, composition_id: int) -> None:
        self._request("DELETE", f"/compositions/{composition_id}")

    def export_pdf(self, composition_id: int) -> bytes:
        return self._request("GET", f"/compositions/{composition_id}/export.pdf").content
