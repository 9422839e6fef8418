"""Create a user directly in the DB.

Usage:
  python scripts/create_user.py --username alice --email alice@example.com --password '...'

NOTE: This is intended for local/dev. It applies the same rules as /auth/register.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from repo_favorites.auth.crud import create_user
from repo_favorites.config import load_config
from repo_favorites.db import connect, init_db
from repo_favorites.errors import RepoFavoritesError


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--username", required=True)
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    args = ap.parse_args()

    cfg = load_config()
    if len(args.password) < cfg.AUTH_PASSWORD_MIN_LENGTH:
        ap.error(f"password must be at least {cfg.AUTH_PASSWORD_MIN_LENGTH} characters")

    init_db(cfg.DB_DSN)

    try:
        with connect(cfg.DB_DSN) as conn:
            u = create_user(conn, username=args.username, email=args.email, password=args.password)
    except RepoFavoritesError as e:
        print(f"Could not create user: {e.code}", file=sys.stderr)
        sys.exit(1)

    print("Created user:")
    print(u)


if __name__ == "__main__":
    main()
