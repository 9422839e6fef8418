"""Command-line client for the favorites API.

The token is kept in CLIENT_TOKEN_PATH between runs, so `login` once and the
other commands re-use the session.

Usage:
  python scripts/favorites_cli.py register --username alice --email alice@example.com
  python scripts/favorites_cli.py login --identifier alice
  python scripts/favorites_cli.py whoami
  python scripts/favorites_cli.py add --name repo1 --link https://github.com/a/repo1 --stars 5
  python scripts/favorites_cli.py list
  python scripts/favorites_cli.py remove 3
  python scripts/favorites_cli.py logout
"""

import argparse
import getpass
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from repo_favorites.client import ApiClient, ApiError, AuthSession, TokenStore
from repo_favorites.config import load_config


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, sort_keys=True))


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--base-url", default=None, help="Defaults to API_BASE_URL")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("register")
    p.add_argument("--username", required=True)
    p.add_argument("--email", required=True)

    p = sub.add_parser("login")
    p.add_argument("--identifier", required=True, help="username or email")

    sub.add_parser("logout")
    sub.add_parser("whoami")
    sub.add_parser("list")

    p = sub.add_parser("add")
    p.add_argument("--name", required=True)
    p.add_argument("--link", required=True)
    p.add_argument("--stars", type=int, default=0)
    p.add_argument("--description", default=None)
    p.add_argument("--language", default=None)

    p = sub.add_parser("remove")
    p.add_argument("favorite_id", type=int)

    args = ap.parse_args()

    cfg = load_config()
    base_url = args.base_url or cfg.API_BASE_URL
    session = AuthSession(
        base_url,
        TokenStore(cfg.CLIENT_TOKEN_PATH),
        client_factory=lambda url, tp: ApiClient(url, tp, timeout=cfg.CLIENT_TIMEOUT_SECONDS),
    )

    try:
        if args.cmd == "register":
            _print(session.register(args.username, args.email, getpass.getpass("Password: ")))
            return
        if args.cmd == "login":
            _print(session.login(args.identifier, getpass.getpass("Password: ")))
            return
        if args.cmd == "logout":
            session.logout()
            print("Logged out")
            return

        if not session.hydrate():
            print("Not logged in (or session expired). Run `login` first.", file=sys.stderr)
            sys.exit(2)

        if args.cmd == "whoami":
            _print(session.user)
        elif args.cmd == "list":
            _print(session.call(lambda c: c.list_favorites()))
        elif args.cmd == "add":
            _print(
                session.call(
                    lambda c: c.add_favorite(
                        name=args.name,
                        link=args.link,
                        star_count=args.stars,
                        description=args.description,
                        language=args.language,
                    )
                )
            )
        elif args.cmd == "remove":
            _print(session.call(lambda c: c.remove_favorite(args.favorite_id)))
    except ApiError as e:
        print(f"Error: {e.detail} (HTTP {e.status_code})", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
