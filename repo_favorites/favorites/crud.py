"""Ownership-scoped CRUD over the `favorites` table.

Every function takes the owner's `user_id` as its own argument and filters on it.
Callers pass the id from the verified token, never one read from a request body.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from repo_favorites.db import is_unique_violation
from repo_favorites.errors import FavoriteExistsError, ValidationError
from repo_favorites.util.time import utcnow_iso

# Column bounds: star_count is INTEGER, repo_id is BIGSERIAL on Postgres.
MAX_STAR_COUNT = 2**31 - 1
MAX_REPO_ID = 2**63 - 1


def public_favorite(row: Any | Dict[str, Any]) -> Dict[str, Any]:
    d = dict(row)
    owner = None
    if d.get("owner_login") or d.get("owner_avatar_url"):
        owner = {"login": d.get("owner_login"), "avatar_url": d.get("owner_avatar_url")}
    return {
        "id": int(d["repo_id"]),
        "user_id": int(d["user_id"]),
        "name": d["name"],
        "description": d.get("description"),
        "starCount": int(d["star_count"]),
        "link": d["link"],
        "language": d.get("language"),
        "owner": owner,
        "created_at": d.get("created_at"),
        "updated_at": d.get("updated_at"),
    }


def _clean(s: Optional[str]) -> Optional[str]:
    if s is None:
        return None
    s = str(s).strip()
    return s or None


def validate_favorite(*, name: Any, link: Any, star_count: Any) -> None:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("invalid_favorite")
    if not isinstance(link, str) or not link.strip():
        raise ValidationError("invalid_favorite")
    # bool is an int subclass; True is not a star count.
    if isinstance(star_count, bool) or not isinstance(star_count, int):
        raise ValidationError("invalid_favorite")
    if not 0 <= star_count <= MAX_STAR_COUNT:
        raise ValidationError("invalid_favorite")


def create_favorite(
    conn: Any,
    *,
    user_id: int,
    name: str,
    link: str,
    star_count: int,
    description: str | None = None,
    language: str | None = None,
    owner_login: str | None = None,
    owner_avatar_url: str | None = None,
) -> Dict[str, Any]:
    validate_favorite(name=name, link=link, star_count=star_count)
    link = link.strip()

    existing = conn.execute(
        "SELECT 1 FROM favorites WHERE user_id=? AND link=?",
        (int(user_id), link),
    ).fetchone()
    if existing is not None:
        raise FavoriteExistsError()

    now = utcnow_iso()
    try:
        conn.execute(
            """
            INSERT INTO favorites (
                user_id, name, description, star_count, link, language,
                owner_login, owner_avatar_url, created_at, updated_at
            )
            VALUES (?,?,?,?,?,?,?,?,?,?)
            """,
            (
                int(user_id),
                name.strip(),
                description,
                int(star_count),
                link,
                _clean(language),
                _clean(owner_login),
                _clean(owner_avatar_url),
                now,
                now,
            ),
        )
    except Exception as exc:
        if is_unique_violation(exc):
            raise FavoriteExistsError() from exc
        raise

    row = conn.execute(
        "SELECT * FROM favorites WHERE user_id=? AND link=?",
        (int(user_id), link),
    ).fetchone()
    if row is None:
        raise RuntimeError("favorite_insert_not_found")
    return public_favorite(row)


def list_favorites(conn: Any, user_id: int) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT * FROM favorites WHERE user_id=? ORDER BY created_at ASC, repo_id ASC",
        (int(user_id),),
    ).fetchall()
    return [public_favorite(r) for r in rows]


def get_owned_favorite(conn: Any, user_id: int, repo_id: int) -> Optional[Dict[str, Any]]:
    if not 0 < int(repo_id) <= MAX_REPO_ID:
        return None
    row = conn.execute(
        "SELECT * FROM favorites WHERE repo_id=? AND user_id=?",
        (int(repo_id), int(user_id)),
    ).fetchone()
    if row is None:
        return None
    return public_favorite(row)


def delete_favorite(conn: Any, user_id: int, repo_id: int) -> Optional[Dict[str, Any]]:
    """Delete one of the caller's favorites and return it.

    Returns None both when the id does not exist and when it belongs to another
    user; callers must not tell those apart.
    """
    fav = get_owned_favorite(conn, user_id, repo_id)
    if fav is None:
        return None
    conn.execute(
        "DELETE FROM favorites WHERE repo_id=? AND user_id=?",
        (int(repo_id), int(user_id)),
    )
    return fav
