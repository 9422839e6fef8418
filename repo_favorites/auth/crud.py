from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional

from repo_favorites.db import is_unique_violation
from repo_favorites.errors import UserExistsError, ValidationError
from repo_favorites.util.time import utcnow_iso

from .security import hash_password, verify_password


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def public_user(row: Any | Dict[str, Any]) -> Dict[str, Any]:
    d = dict(row)
    return {
        "id": int(d["user_id"]),
        "username": d["username"],
        "email": d["email"],
    }


def get_user_by_id(conn: Any, user_id: int) -> Optional[Any]:
    return conn.execute(
        "SELECT * FROM users WHERE user_id=?",
        (int(user_id),),
    ).fetchone()


def get_user_by_identifier(conn: Any, identifier: str) -> Optional[Any]:
    """Look a user up by username OR email."""
    ident = (identifier or "").strip().lower()
    if not ident:
        return None
    return conn.execute(
        "SELECT * FROM users WHERE username=? OR email=? ORDER BY user_id LIMIT 1",
        (ident, ident),
    ).fetchone()


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("not-a-real-password")


def verify_user_credentials(conn: Any, identifier: str, password: str) -> Optional[Any]:
    """Return the user row when identifier + password match, else None.

    Unknown identifiers still pay for one hash comparison so response time does
    not reveal whether the account exists.
    """
    row = get_user_by_identifier(conn, identifier)
    if row is None:
        verify_password(password, _dummy_hash())
        return None
    if not verify_password(password, str(row["password_hash"])):
        return None
    return row


def create_user(
    conn: Any,
    *,
    username: str,
    email: str,
    password: str,
) -> Dict[str, Any]:
    u = normalize_username(username)
    e = normalize_email(email)
    if not u or not e or not password:
        raise ValidationError("missing_fields")

    # Login accepts either field, so a new username may not equal an existing
    # email (and vice versa) or the identifier would be ambiguous.
    existing = conn.execute(
        "SELECT 1 FROM users WHERE username IN (?,?) OR email IN (?,?)",
        (u, e, u, e),
    ).fetchone()
    if existing is not None:
        raise UserExistsError()

    now = utcnow_iso()
    try:
        conn.execute(
            """
            INSERT INTO users (username, email, password_hash, created_at, updated_at)
            VALUES (?,?,?,?,?)
            """,
            (u, e, hash_password(password), now, now),
        )
    except Exception as exc:
        # A concurrent registration won the race; the UNIQUE constraint decides.
        if is_unique_violation(exc):
            raise UserExistsError() from exc
        raise

    row = conn.execute("SELECT * FROM users WHERE username=?", (u,)).fetchone()
    if row is None:
        raise RuntimeError("user_insert_not_found")
    return public_user(row)


def touch_last_login(conn: Any, user_id: int) -> None:
    now = utcnow_iso()
    conn.execute(
        "UPDATE users SET last_login_at=?, updated_at=? WHERE user_id=?",
        (now, now, int(user_id)),
    )
