"""Domain errors raised by the CRUD layer.

The API layer maps these to HTTP responses; the CRUD layer never imports FastAPI.
"""

from __future__ import annotations


class RepoFavoritesError(Exception):
    """Base class for errors this package raises on purpose."""

    code = "server_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)


class ValidationError(RepoFavoritesError):
    """Client-correctable input problem. ``code`` names the problem."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(code)


class UserExistsError(RepoFavoritesError):
    code = "user_exists"


class FavoriteExistsError(RepoFavoritesError):
    code = "already_favorited"
