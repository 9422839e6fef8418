from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from repo_favorites.config import Config

from .security import InvalidTokenError, decode_access_token


# auto_error=False: a missing or non-Bearer header yields None and we answer 401 ourselves.
_bearer = HTTPBearer(auto_error=False)


def get_config(request: Request) -> Config:
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise HTTPException(status_code=500, detail="server_config_missing")
    return cfg


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    """Authenticate a request from its `Authorization: Bearer <jwt>` header.

    Returns the identity claim ``{"id", "username", "exp"}``. This is the only
    place a token is verified; handlers trust what it returns.

      - no header / wrong scheme / empty token -> 401 missing_token
      - bad signature / expired / malformed    -> 403 invalid_token
    """

    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="missing_token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return decode_access_token(token=credentials.credentials, secret=cfg.AUTH_JWT_SECRET)
    except InvalidTokenError:
        raise HTTPException(status_code=403, detail="invalid_token")
