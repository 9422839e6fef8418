import os
from dataclasses import dataclass
from typing import Optional

# Optional: load a local .env file if present.
try:
    from dotenv import load_dotenv

    load_dotenv()
except Exception:
    # If python-dotenv isn't installed or .env isn't present, that's fine.
    pass


def _env_bool(name: str, default: Optional[bool] = None) -> Optional[bool]:
    """Parse a boolean environment variable.

    Returns:
      - True/False if the env var is set to a recognizable value
      - default if unset or unrecognized

    Accepted truthy: 1, true, yes, y, on
    Accepted falsy:  0, false, no, n, off
    """

    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip().lower()
    if v in ("1", "true", "yes", "y", "on"):
        return True
    if v in ("0", "false", "no", "n", "off"):
        return False
    return default


@dataclass(frozen=True)
class Config:
    """Runtime configuration.

    IMPORTANT: Provide secrets via environment variables or a .env file.
    Do not hardcode secrets in source code.
    """

    # -----------------
    # Core
    # -----------------
    # Preferred: set REPOFAV_DATABASE_URL (or DATABASE_URL) to use Postgres.
    # Fallback: REPOFAV_DB_PATH for SQLite.
    DB_DSN: str = (
        os.environ.get("REPOFAV_DATABASE_URL")
        or os.environ.get("DATABASE_URL")
        or os.environ.get("REPOFAV_DB_PATH", "./repo_favorites.sqlite")
    )

    # Every route is mounted below this prefix (e.g. /api/auth/login).
    API_PREFIX: str = os.environ.get("API_PREFIX", "/api")

    # -----------------
    # Auth (JWT)
    # -----------------
    # There is no default secret: the API refuses to start without one.
    AUTH_JWT_SECRET: str = os.environ.get("AUTH_JWT_SECRET", "")
    AUTH_TOKEN_EXPIRE_SECONDS: int = int(os.environ.get("AUTH_TOKEN_EXPIRE_SECONDS", "3600"))
    AUTH_PASSWORD_MIN_LENGTH: int = int(os.environ.get("AUTH_PASSWORD_MIN_LENGTH", "6"))

    # -----------------
    # CORS (development)
    # -----------------
    # If you develop with Vite on :5173 and API on :5000, allow that origin.
    CORS_ALLOW_ORIGINS: str = os.environ.get(
        "CORS_ALLOW_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000",
    )
    CORS_ALLOW_CREDENTIALS: bool = _env_bool("CORS_ALLOW_CREDENTIALS", False) is True

    # -----------------
    # Client
    # -----------------
    API_BASE_URL: str = os.environ.get("API_BASE_URL", "http://localhost:5000/api")
    CLIENT_TOKEN_PATH: str = os.environ.get(
        "CLIENT_TOKEN_PATH",
        os.path.join(os.path.expanduser("~"), ".repo_favorites", "token"),
    )
    CLIENT_TIMEOUT_SECONDS: float = float(os.environ.get("CLIENT_TIMEOUT_SECONDS", "30"))


def load_config() -> Config:
    return Config()


def validate_config(cfg: Config) -> None:
    """Fail fast on settings the API cannot run without."""
    if not (cfg.AUTH_JWT_SECRET or "").strip():
        raise RuntimeError("AUTH_JWT_SECRET is not set; refusing to start the API")
    if int(cfg.AUTH_TOKEN_EXPIRE_SECONDS) <= 0:
        raise RuntimeError("AUTH_TOKEN_EXPIRE_SECONDS must be positive")
    if not (cfg.DB_DSN or "").strip():
        raise RuntimeError("No database configured (set REPOFAV_DATABASE_URL or REPOFAV_DB_PATH)")
