from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import requests


def _debug(msg: str) -> None:
    print(f"[client] {msg}")


class ApiError(RuntimeError):
    """Non-2xx answer from the API. `detail` is the server's error code."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"API error {status_code}: {detail}")
        self.status_code = int(status_code)
        self.detail = detail

    @property
    def is_auth_failure(self) -> bool:
        return self.status_code in (401, 403)


class ApiClient:
    """Thin HTTP wrapper around the favorites API.

    `token_provider` is called before every request; when it returns a token the
    request carries `Authorization: Bearer <token>`. `http` is anything with a
    requests-style `request()` method (a `requests.Session` by default).
    """

    def __init__(
        self,
        base_url: str,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        *,
        http: Any = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider or (lambda: None)
        self.http = http if http is not None else requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, *, json_body: Any = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"Content-Type": "application/json"}
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        r = self.http.request(method, url, headers=headers, json=json_body, timeout=self.timeout)
        if r.status_code >= 400:
            detail = "unknown_error"
            try:
                body = r.json()
                if isinstance(body, dict) and body.get("detail"):
                    detail = str(body["detail"])
            except ValueError:
                pass
            _debug(f"{method} {path} -> {r.status_code} {detail}")
            raise ApiError(r.status_code, detail)
        return r.json() if r.content else None

    # -----------------
    # Auth
    # -----------------

    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/auth/register",
            json_body={"username": username, "email": email, "password": password},
        )

    def login(self, identifier: str, password: str) -> Dict[str, Any]:
        return self._request("POST", "/auth/login", json_body={"identifier": identifier, "password": password})

    def verify(self) -> Dict[str, Any]:
        """Return `{id, username, email}` for the current token."""
        return self._request("GET", "/auth/verify")["user"]

    # -----------------
    # Favorites
    # -----------------

    def list_favorites(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/user/favorites")

    def add_favorite(
        self,
        *,
        name: str,
        link: str,
        star_count: int,
        description: str | None = None,
        language: str | None = None,
        owner_login: str | None = None,
        owner_avatar_url: str | None = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "name": name,
            "description": description,
            "starCount": star_count,
            "link": link,
            "language": language,
        }
        if owner_login or owner_avatar_url:
            body["owner"] = {"login": owner_login, "avatar_url": owner_avatar_url}
        return self._request("POST", "/user/favorites", json_body=body)

    def remove_favorite(self, favorite_id: int) -> Dict[str, Any]:
        return self._request("DELETE", f"/user/favorites/{int(favorite_id)}")
