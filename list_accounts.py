#!/usr/bin/env python3
"""Script to list all user accounts from the database."""
import sys
from pathlib import Path

from backend.config import load_settings
from backend.db import connect

settings = load_settings(require_secret=False)
db_path = Path(settings.database_path)

if not db_path.exists():
    print(f"Error: Database file not found at {db_path}")
    sys.exit(1)

conn = connect(str(db_path))
rows = conn.execute(
    """
    SELECT user_id, email, name, is_admin, verification_token, created_at
    FROM users
    ORDER BY user_id
    """
).fetchall()

print("\n" + "=" * 90)
print("ALL USER ACCOUNTS")
print("=" * 90)

if not rows:
    print("No accounts found in the database.")
else:
    print(f"{'ID':<6} | {'Email':<35} | {'Name':<16} | {'Admin':<6} | {'Verified':<8} | {'Created At'}")
    print("-" * 90)

    for row in rows:
        admin_status = "Yes" if row["is_admin"] else "No"
        verified = "No" if row["verification_token"] else "Yes"
        created_at = row["created_at"] or "N/A"
        print(
            f"{row['user_id']:<6} | {row['email']:<35} | {row['name']:<16} | "
            f"{admin_status:<6} | {verified:<8} | {created_at}"
        )

print("=" * 90)
print(f"Total accounts: {len(rows)}")
print("=" * 90)

conn.close()
