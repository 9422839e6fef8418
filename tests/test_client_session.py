"""AuthSession / ApiClient driven against the real app through TestClient."""

import pytest

from repo_favorites.client import ANONYMOUS, AUTHENTICATED, ApiClient, ApiError, AuthSession, TokenStore
from repo_favorites.config import Config
from repo_favorites.db import connect


BASE_URL = "http://testserver/api"


@pytest.fixture
def store(tmp_path) -> TokenStore:
    return TokenStore(tmp_path / "session" / "token")


@pytest.fixture
def make_session(client, store):
    def _make(token_store: TokenStore = store) -> AuthSession:
        return AuthSession(
            BASE_URL,
            token_store,
            client_factory=lambda url, tp: ApiClient(url, tp, http=client),
        )

    return _make


def test_token_store_round_trip(store) -> None:
    assert store.load() is None
    store.save("abc")
    assert store.load() == "abc"
    store.clear()
    assert store.load() is None
    store.clear()  # clearing twice is fine


def test_register_authenticates_and_persists_token(make_session, store) -> None:
    session = make_session()
    assert session.state == ANONYMOUS

    user = session.register("alice", "alice@x.com", "secret1")

    assert session.state == AUTHENTICATED
    assert session.is_authenticated
    assert user["username"] == "alice"
    assert user["email"] == "alice@x.com"
    assert store.load() == session.token


def test_failed_login_stays_anonymous(make_session, store) -> None:
    make_session().register("alice", "alice@x.com", "secret1")
    store.clear()

    session = make_session()
    with pytest.raises(ApiError) as e:
        session.login("alice", "wrong-password")

    assert e.value.status_code == 400
    assert e.value.detail == "invalid_credentials"
    assert session.state == ANONYMOUS
    assert session.token is None
    assert store.load() is None


def test_hydrate_restores_session_from_stored_token(make_session) -> None:
    first = make_session()
    first.register("alice", "alice@x.com", "secret1")

    # A new process reading the same token file
    second = make_session()
    assert second.state == ANONYMOUS
    assert second.hydrate() is True
    assert second.state == AUTHENTICATED
    assert second.user == first.user


def test_hydrate_without_token_is_anonymous(make_session) -> None:
    session = make_session()
    assert session.hydrate() is False
    assert session.state == ANONYMOUS


def test_hydrate_with_rejected_token_clears_store(make_session, store) -> None:
    store.save("not.a.valid-token")
    session = make_session()

    assert session.hydrate() is False
    assert session.state == ANONYMOUS
    assert session.token is None
    assert store.load() is None


def test_hydrate_when_user_was_deleted_acts_like_logout(make_session, store, cfg) -> None:
    make_session().register("alice", "alice@x.com", "secret1")
    with connect(cfg.DB_DSN) as conn:
        conn.execute("DELETE FROM users WHERE username='alice'")

    session = make_session()
    assert session.hydrate() is False
    assert session.state == ANONYMOUS
    assert store.load() is None


def test_logout_clears_everything(make_session, store) -> None:
    session = make_session()
    session.register("alice", "alice@x.com", "secret1")

    session.logout()

    assert session.state == ANONYMOUS
    assert session.user is None
    assert session.token is None
    assert store.load() is None


def test_favorites_through_session(make_session) -> None:
    session = make_session()
    session.register("alice", "alice@x.com", "secret1")

    fav = session.call(
        lambda c: c.add_favorite(
            name="repo1",
            link="https://github.com/a/repo1",
            star_count=5,
            language="Python",
            owner_login="a",
            owner_avatar_url="https://avatars.githubusercontent.com/u/1",
        )
    )
    assert fav["owner"]["login"] == "a"
    assert [f["id"] for f in session.call(lambda c: c.list_favorites())] == [fav["id"]]

    with pytest.raises(ApiError) as e:
        session.call(lambda c: c.add_favorite(name="repo1", link="https://github.com/a/repo1", star_count=5))
    assert e.value.status_code == 409
    # A conflict is not an auth failure; the session survives.
    assert session.state == AUTHENTICATED

    assert session.call(lambda c: c.remove_favorite(fav["id"]))["favorite"]["id"] == fav["id"]
    assert session.call(lambda c: c.list_favorites()) == []


def test_rejected_token_during_call_ends_session(make_session, client, store) -> None:
    session = make_session()
    session.register("alice", "alice@x.com", "secret1")

    # Server rotates its secret: every outstanding token is now invalid.
    cfg = client.app.state.cfg
    client.app.state.cfg = Config(DB_DSN=cfg.DB_DSN, AUTH_JWT_SECRET="rotated", CORS_ALLOW_ORIGINS="")

    with pytest.raises(ApiError) as e:
        session.call(lambda c: c.list_favorites())

    assert e.value.status_code == 403
    assert e.value.is_auth_failure
    assert session.state == ANONYMOUS
    assert store.load() is None


def test_client_raises_api_error_with_server_detail(client) -> None:
    api = ApiClient(BASE_URL, http=client)
    with pytest.raises(ApiError) as e:
        api.list_favorites()
    assert e.value.status_code == 401
    assert e.value.detail == "missing_token"
