#!/usr/bin/env python3
"""
Create an admin account, or promote an existing one, in the configured database.

Example:
    python scripts/create_admin.py --email admin@example.com --password secret1
"""
from __future__ import annotations

import argparse
import getpass
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.models import ensure_admin_user, init_db  # noqa: E402
from backend.config import load_settings  # noqa: E402
from backend.db import connect  # noqa: E402
from backend.security import hash_password  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create or promote an admin account.")
    parser.add_argument("--email", required=True, help="Account email address.")
    parser.add_argument("--password", help="Password for a new account (prompted when omitted).")
    parser.add_argument("--database", help="SQLite file to use instead of the configured one.")
    args = parser.parse_args(argv)

    settings = load_settings()
    db_path = args.database or settings.database_path
    password = args.password or getpass.getpass("Password: ")
    if len(password.strip()) < 5:
        print("Password must be at least 5 characters.")
        return 1

    conn = connect(db_path)
    try:
        init_db(conn)
        user_id = ensure_admin_user(conn, args.email, password.strip(), hash_password)
    finally:
        conn.close()

    print(f"Admin ready: {args.email} (user_id={user_id}) in {db_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
