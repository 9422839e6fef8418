"""Authentication / authorization helpers.

Auth is deliberately small:

- Users table (username + email + password hash)
- Stateless JWT access tokens sent as `Authorization: Bearer <token>`

`get_current_user` is the FastAPI dependency every protected route depends on.
"""

from .deps import get_current_user
from .crud import create_user, verify_user_credentials

__all__ = [
    "get_current_user",
    "create_user",
    "verify_user_credentials",
]
