from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from repo_favorites.config import Config, load_config, validate_config
from repo_favorites.db import connect, init_db
from repo_favorites.errors import FavoriteExistsError, UserExistsError, ValidationError

from repo_favorites.auth import get_current_user
from repo_favorites.auth.crud import (
    create_user,
    get_user_by_id,
    public_user,
    touch_last_login,
    verify_user_credentials,
)
from repo_favorites.auth.deps import get_config
from repo_favorites.auth.security import create_access_token
from repo_favorites.favorites.crud import MAX_REPO_ID, create_favorite, delete_favorite, list_favorites


def _debug(msg: str) -> None:
    print(f"[api] {msg}")


@contextmanager
def _endpoint(action: str) -> Iterator[None]:
    """Map anything unexpected inside a handler to one generic 500.

    HTTP errors raised on purpose pass through unchanged. The real exception is
    logged server-side only.
    """
    try:
        yield
    except HTTPException:
        raise
    except Exception as e:
        _debug(f"{action} failed: {type(e).__name__}: {e}")
        raise HTTPException(status_code=500, detail="server_error")


def _issue_token(cfg: Config, *, user_id: int, username: str) -> str:
    return create_access_token(
        secret=cfg.AUTH_JWT_SECRET,
        user_id=int(user_id),
        username=str(username),
        expires_seconds=int(cfg.AUTH_TOKEN_EXPIRE_SECONDS),
    )


# -----------------------------
# Health
# -----------------------------

health_router = APIRouter()


@health_router.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}


# -----------------------------
# Auth
# -----------------------------

auth_router = APIRouter(prefix="/auth")


class RegisterRequest(BaseModel):
    # Fields are optional so a missing one is a 400 with our own code, not a 422.
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    """`identifier` is either the username or the email."""

    identifier: Optional[str] = None
    password: Optional[str] = None


@auth_router.post("/register", status_code=201)
def auth_register(payload: RegisterRequest, cfg: Config = Depends(get_config)) -> Dict[str, Any]:
    username = (payload.username or "").strip()
    email = (payload.email or "").strip()
    password = payload.password or ""
    if not username or not email or not password:
        raise HTTPException(status_code=400, detail="missing_fields")
    if len(password) < int(cfg.AUTH_PASSWORD_MIN_LENGTH):
        raise HTTPException(status_code=400, detail="password_too_short")

    with _endpoint("register"):
        # Token is minted inside the transaction: if signing fails the insert rolls back.
        with connect(cfg.DB_DSN) as conn:
            try:
                u = create_user(conn, username=username, email=email, password=password)
            except UserExistsError as e:
                raise HTTPException(status_code=400, detail=e.code)
            except ValidationError as e:
                raise HTTPException(status_code=400, detail=e.code)

            token = _issue_token(cfg, user_id=u["id"], username=u["username"])

    _debug(f"Registered user id={u['id']}")
    return {"message": "User registered!", "token": token, "username": u["username"]}


@auth_router.post("/login")
def auth_login(payload: LoginRequest, cfg: Config = Depends(get_config)) -> Dict[str, Any]:
    identifier = (payload.identifier or "").strip()
    password = payload.password or ""
    if not identifier or not password:
        raise HTTPException(status_code=400, detail="missing_fields")

    with _endpoint("login"):
        with connect(cfg.DB_DSN) as conn:
            user_row = verify_user_credentials(conn, identifier, password)
            if user_row is None:
                # Same answer for unknown identifier and wrong password.
                raise HTTPException(status_code=400, detail="invalid_credentials")

            touch_last_login(conn, int(user_row["user_id"]))
            token = _issue_token(cfg, user_id=int(user_row["user_id"]), username=str(user_row["username"]))

    return {"token": token, "username": str(user_row["username"])}


@auth_router.get("/verify")
def auth_verify(
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    """Re-establish a session from a stored token.

    The token may outlive its user; clients treat 404 like a logout.
    """
    with _endpoint("verify"):
        with connect(cfg.DB_DSN) as conn:
            row = get_user_by_id(conn, int(user["id"]))
        if row is None:
            raise HTTPException(status_code=404, detail="user_not_found")
        return {"user": public_user(row)}


# -----------------------------
# Favorites
# -----------------------------

favorites_router = APIRouter(prefix="/user")


class OwnerPayload(BaseModel):
    login: Optional[str] = None
    avatar_url: Optional[str] = None


class FavoriteRequest(BaseModel):
    """Body of POST /user/favorites.

    Unknown keys (including any `user_id`) are ignored; the owner always comes
    from the token.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    # Checked by validate_favorite so "5" or true are rejected instead of coerced.
    starCount: Any = None
    link: Optional[str] = None
    language: Optional[str] = None
    owner: Optional[OwnerPayload] = None


@favorites_router.post("/favorites", status_code=201)
def favorites_create(
    payload: FavoriteRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    owner = payload.owner or OwnerPayload()
    with _endpoint("create favorite"):
        with connect(cfg.DB_DSN) as conn:
            try:
                return create_favorite(
                    conn,
                    user_id=int(user["id"]),
                    name=payload.name,
                    link=payload.link,
                    star_count=payload.starCount,
                    description=payload.description,
                    language=payload.language,
                    owner_login=owner.login,
                    owner_avatar_url=owner.avatar_url,
                )
            except ValidationError as e:
                raise HTTPException(status_code=400, detail=e.code)
            except FavoriteExistsError as e:
                raise HTTPException(status_code=409, detail=e.code)


@favorites_router.get("/favorites")
def favorites_list(
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_config),
) -> List[Dict[str, Any]]:
    with _endpoint("list favorites"):
        with connect(cfg.DB_DSN) as conn:
            return list_favorites(conn, int(user["id"]))


@favorites_router.delete("/favorites/{favorite_id}")
def favorites_delete(
    favorite_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    cfg: Config = Depends(get_config),
) -> Dict[str, Any]:
    # A non-numeric or out-of-range id cannot exist; answer exactly like any other miss.
    try:
        repo_id = int(favorite_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="favorite_not_found")
    if not 0 < repo_id <= MAX_REPO_ID:
        raise HTTPException(status_code=404, detail="favorite_not_found")

    with _endpoint("delete favorite"):
        with connect(cfg.DB_DSN) as conn:
            deleted = delete_favorite(conn, int(user["id"]), repo_id)
        if deleted is None:
            raise HTTPException(status_code=404, detail="favorite_not_found")
        return {"message": "Saved repo deleted", "favorite": deleted}


# -----------------------------
# App
# -----------------------------


def create_app(cfg: Config | None = None) -> FastAPI:
    cfg = cfg or load_config()
    app = FastAPI(title="GitHub Favorites API", version="0.1.0")
    # Handlers and the auth dependency read config from here.
    app.state.cfg = cfg

    _cors_origins = [o.strip() for o in (cfg.CORS_ALLOW_ORIGINS or "").split(",") if o.strip()]
    if _cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=_cors_origins,
            allow_credentials=cfg.CORS_ALLOW_CREDENTIALS,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.on_event("startup")
    def _on_startup() -> None:
        # Missing secret / DB config is fatal here rather than on the first request.
        validate_config(cfg)
        init_db(cfg.DB_DSN)

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": "invalid_request"})

    @app.exception_handler(Exception)
    async def _server_error(request: Request, exc: Exception) -> JSONResponse:
        _debug(f"Unhandled error on {request.method} {request.url.path}: {type(exc).__name__}: {exc}")
        return JSONResponse(status_code=500, content={"detail": "server_error"})

    p = (cfg.API_PREFIX or "").strip("/")
    prefix = f"/{p}" if p else ""
    app.include_router(health_router, prefix=prefix)
    app.include_router(auth_router, prefix=prefix)
    app.include_router(favorites_router, prefix=prefix)

    # Catch-all for undefined routes; must be registered last.
    @app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
    def _not_found(path: str) -> None:
        raise HTTPException(status_code=404, detail="endpoint_not_found")

    return app


app = create_app()
