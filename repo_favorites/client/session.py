"""Client-side auth context.

One `AuthSession` object holds the current token and user. It has two states,
ANONYMOUS and AUTHENTICATED, and only moves between them atomically:

    ANONYMOUS --register/login--> AUTHENTICATED --logout--> ANONYMOUS
    AUTHENTICATED --verify fails / token rejected--> ANONYMOUS

`hydrate()` is the init rule (persisted token -> verify), `logout()` the teardown.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import requests

from .api import ApiClient, ApiError


def _debug(msg: str) -> None:
    print(f"[client] {msg}")


ANONYMOUS = "anonymous"
AUTHENTICATED = "authenticated"


class TokenStore:
    """Persists one bearer token in a file (the CLI's localStorage)."""

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    def load(self) -> Optional[str]:
        try:
            token = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token, encoding="utf-8")
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            # Not every filesystem supports POSIX modes (e.g. some Windows mounts).
            pass

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


class AuthSession:
    def __init__(
        self,
        base_url: str,
        store: TokenStore,
        *,
        client_factory: Optional[Callable[..., ApiClient]] = None,
    ):
        self._store = store
        self._token: Optional[str] = None
        self._user: Optional[Dict[str, Any]] = None
        factory = client_factory or ApiClient
        self.client: ApiClient = factory(base_url, lambda: self._token)

    # -----------------
    # Read side
    # -----------------

    @property
    def state(self) -> str:
        return AUTHENTICATED if self._user is not None else ANONYMOUS

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return dict(self._user) if self._user is not None else None

    @property
    def token(self) -> Optional[str]:
        return self._token

    # -----------------
    # Transitions
    # -----------------

    def _set(self, token: str, user: Dict[str, Any]) -> None:
        self._store.save(token)
        self._token = token
        self._user = dict(user)

    def _clear(self) -> None:
        self._token = None
        self._user = None
        self._store.clear()

    def hydrate(self) -> bool:
        """Restore a session from the persisted token.

        Any failure (no token, rejected token, user gone, network) leaves the
        session ANONYMOUS with the stored token removed.
        """
        token = self._store.load()
        if not token:
            self._clear()
            return False

        self._token = token
        try:
            user = self.client.verify()
        except (ApiError, requests.RequestException) as e:
            _debug(f"Stored session rejected: {e}")
            self._clear()
            return False

        self._set(token, user)
        return True

    def _authenticate(self, token: str) -> Dict[str, Any]:
        # Resolve the full identity before exposing anything to callers.
        self._token = token
        try:
            user = self.client.verify()
        except Exception:
            self._token = None
            raise
        self._set(token, user)
        return self.user or {}

    def login(self, identifier: str, password: str) -> Dict[str, Any]:
        resp = self.client.login(identifier, password)
        return self._authenticate(str(resp["token"]))

    def register(self, username: str, email: str, password: str) -> Dict[str, Any]:
        resp = self.client.register(username, email, password)
        return self._authenticate(str(resp["token"]))

    def logout(self) -> None:
        """Forget the token locally. Tokens are stateless; nothing is revoked server-side."""
        self._clear()

    def call(self, fn: Callable[[ApiClient], Any]) -> Any:
        """Run an authenticated API call; a rejected token ends the session."""
        try:
            return fn(self.client)
        except ApiError as e:
            if e.is_auth_failure:
                _debug("Token rejected by server; logging out")
                self._clear()
            raise
