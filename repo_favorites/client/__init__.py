"""Python client for the favorites API.

`AuthSession` is the single auth context of a client process: it owns the
token, the current user and the persisted token file.
"""

from .api import ApiClient, ApiError
from .session import ANONYMOUS, AUTHENTICATED, AuthSession, TokenStore

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthSession",
    "TokenStore",
    "ANONYMOUS",
    "AUTHENTICATED",
]
