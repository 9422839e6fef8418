from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from passlib.context import CryptContext


_pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
_JWT_ALG = "HS256"


class InvalidTokenError(Exception):
    """Token could not be accepted.

    Raised for every failure mode (bad signature, expired, malformed, missing
    claims) with the same message, so callers cannot tell them apart.
    """

    def __init__(self) -> None:
        super().__init__("invalid_token")


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd.verify(password, password_hash)
    except (ValueError, TypeError):
        # Unrecognized / corrupt hash
        return False


def create_access_token(
    *,
    secret: str,
    user_id: int,
    username: str,
    expires_seconds: int,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")

    now = datetime.now(timezone.utc)
    exp = now + timedelta(seconds=max(1, int(expires_seconds)))

    payload: Dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
        # Two tokens minted in the same second must still differ.
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, secret, algorithm=_JWT_ALG)


def decode_access_token(*, token: str, secret: str) -> Dict[str, Any]:
    """Return the identity claim ``{"id", "username", "exp"}`` of a valid token."""
    if not secret:
        raise ValueError("jwt_secret_blank")
    if not token:
        raise InvalidTokenError()

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[_JWT_ALG],
            options={"require": ["sub", "exp"]},
        )
    except jwt.PyJWTError:
        raise InvalidTokenError()

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise InvalidTokenError()

    return {
        "id": user_id,
        "username": str(payload.get("username") or ""),
        "exp": int(payload["exp"]),
    }
