"""CRUD-layer behaviour that the HTTP tests cannot reach directly."""

import pytest

from repo_favorites.auth.crud import create_user, get_user_by_identifier, verify_user_credentials
from repo_favorites.db import connect, init_db
from repo_favorites.errors import FavoriteExistsError, UserExistsError, ValidationError
from repo_favorites.favorites.crud import create_favorite, delete_favorite, list_favorites


class _NoRows:
    def fetchone(self):
        return None


class RacingConn:
    """Hides existing rows from the pre-insert check, as if another request
    committed between our SELECT and our INSERT."""

    def __init__(self, conn, check_prefix: str):
        self._conn = conn
        self._check_prefix = check_prefix

    def execute(self, sql, params=()):
        if sql.strip().startswith(self._check_prefix):
            return _NoRows()
        return self._conn.execute(sql, params)


@pytest.fixture
def dsn(tmp_path) -> str:
    d = str(tmp_path / "crud.sqlite")
    init_db(d)
    return d


def test_concurrent_registration_loses_to_unique_constraint(dsn) -> None:
    with connect(dsn) as conn:
        create_user(conn, username="alice", email="alice@x.com", password="secret1")

    with pytest.raises(UserExistsError):
        with connect(dsn) as conn:
            create_user(
                RacingConn(conn, "SELECT 1 FROM users"),
                username="bob",
                email="alice@x.com",
                password="secret1",
            )

    with connect(dsn) as conn:
        assert conn.execute("SELECT COUNT(*) AS n FROM users").fetchone()["n"] == 1


def test_concurrent_duplicate_favorite_loses_to_unique_constraint(dsn) -> None:
    with connect(dsn) as conn:
        uid = create_user(conn, username="alice", email="alice@x.com", password="secret1")["id"]
        create_favorite(conn, user_id=uid, name="repo1", link="https://github.com/a/repo1", star_count=1)

    with pytest.raises(FavoriteExistsError):
        with connect(dsn) as conn:
            create_favorite(
                RacingConn(conn, "SELECT 1 FROM favorites"),
                user_id=uid,
                name="repo1",
                link="https://github.com/a/repo1",
                star_count=1,
            )


def test_create_user_requires_fields(dsn) -> None:
    with connect(dsn) as conn:
        with pytest.raises(ValidationError) as e:
            create_user(conn, username="", email="a@x.com", password="secret1")
    assert e.value.code == "missing_fields"


def test_create_user_normalizes_identifiers(dsn) -> None:
    with connect(dsn) as conn:
        u = create_user(conn, username="  Alice ", email="Alice@X.com", password="secret1")
        assert u["username"] == "alice"
        assert u["email"] == "alice@x.com"
        assert get_user_by_identifier(conn, "ALICE@x.com")["user_id"] == u["id"]


def test_verify_user_credentials(dsn) -> None:
    with connect(dsn) as conn:
        create_user(conn, username="alice", email="alice@x.com", password="secret1")
        assert verify_user_credentials(conn, "alice", "secret1") is not None
        assert verify_user_credentials(conn, "alice", "secret2") is None
        assert verify_user_credentials(conn, "nobody", "secret1") is None
        assert verify_user_credentials(conn, "", "secret1") is None


def test_delete_is_owner_scoped(dsn) -> None:
    with connect(dsn) as conn:
        alice = create_user(conn, username="alice", email="alice@x.com", password="secret1")["id"]
        bob = create_user(conn, username="bob", email="bob@x.com", password="secret1")["id"]
        fav = create_favorite(conn, user_id=alice, name="repo1", link="https://github.com/a/repo1", star_count=1)

        assert delete_favorite(conn, bob, fav["id"]) is None
        assert [f["id"] for f in list_favorites(conn, alice)] == [fav["id"]]
        assert delete_favorite(conn, alice, fav["id"]) == fav
        assert list_favorites(conn, alice) == []


def test_out_of_range_ids_and_star_counts(dsn) -> None:
    with connect(dsn) as conn:
        uid = create_user(conn, username="alice", email="alice@x.com", password="secret1")["id"]

        assert delete_favorite(conn, uid, 10**20) is None
        assert delete_favorite(conn, uid, 0) is None

        with pytest.raises(ValidationError):
            create_favorite(conn, user_id=uid, name="repo1", link="https://github.com/a/repo1", star_count=10**20)
        assert list_favorites(conn, uid) == []


class _LostInsertConn:
    """Drops every read-back after the insert."""

    def __init__(self, conn):
        self._conn = conn

    def execute(self, sql, params=()):
        if sql.strip().startswith("SELECT *"):
            return _NoRows()
        return self._conn.execute(sql, params)


def test_missing_row_after_insert_raises(dsn) -> None:
    with pytest.raises(RuntimeError, match="user_insert_not_found"):
        with connect(dsn) as conn:
            create_user(_LostInsertConn(conn), username="alice", email="alice@x.com", password="secret1")

    with connect(dsn) as conn:
        uid = create_user(conn, username="bob", email="bob@x.com", password="secret1")["id"]

    with pytest.raises(RuntimeError, match="favorite_insert_not_found"):
        with connect(dsn) as conn:
            create_favorite(
                _LostInsertConn(conn),
                user_id=uid,
                name="repo1",
                link="https://github.com/a/repo1",
                star_count=1,
            )
