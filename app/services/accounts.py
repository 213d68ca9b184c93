from __future__ import annotations

import secrets
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from backend.errors import ApiError
from backend.security import hash_password, verify_password

from ..models import user_row_to_dict
from ..schemas import SignupIn, UserCreateIn, UserUpdateIn
from .common import member_ids, toggle_membership, utc_now

USER_COLUMNS = """
    user_id, email, name, status, image, is_admin, created_at, updated_at
"""


def _email_taken_error(email: str) -> ApiError:
    return ApiError(
        422,
        "Validation failed, entered data is incorrect",
        [{"type": "field", "msg": "Email address already exists!", "path": "email", "value": email}],
    )


def _email_exists(conn: sqlite3.Connection, email: str, exclude_id: int | None = None) -> bool:
    row = conn.execute(
        "SELECT user_id FROM users WHERE email = ? LIMIT 1",
        (email,),
    ).fetchone()
    return row is not None and row["user_id"] != exclude_id


def get_user_row(conn: sqlite3.Connection, user_id: int) -> sqlite3.Row:
    row = conn.execute(
        f"SELECT {USER_COLUMNS} FROM users WHERE user_id = ?",
        (user_id,),
    ).fetchone()
    if row is None:
        raise ApiError(404, "User not found")
    return row


def _brief_users(conn: sqlite3.Connection, ids: List[int]) -> List[dict]:
    if not ids:
        return []
    placeholders = ",".join("?" for _ in ids)
    rows = conn.execute(
        f"SELECT user_id, name, image FROM users WHERE user_id IN ({placeholders})",
        ids,
    ).fetchall()
    by_id = {row["user_id"]: {"_id": row["user_id"], "name": row["name"], "image": row["image"]} for row in rows}
    return [by_id[i] for i in ids if i in by_id]


# ── Auth ────────────────────────────────────────────────────────────────────


def signup(
    conn: sqlite3.Connection,
    data: SignupIn,
    default_image: str,
    verification_ttl: Optional[timedelta],
) -> Dict[str, object]:
    """
    Create a non-admin account.

    When ``verification_ttl`` is given the account starts unverified and the
    returned dict carries the token the caller has to mail out.
    """
    if _email_exists(conn, data.email):
        raise _email_taken_error(data.email)

    token = expires = None
    if verification_ttl is not None:
        token = secrets.token_hex(32)
        expires = (datetime.now(timezone.utc) + verification_ttl).isoformat(timespec="seconds")

    try:
        cur = conn.execute(
            """
            INSERT INTO users (email, password_hash, name, image, is_admin, verification_token, verification_expires)
            VALUES (?, ?, ?, ?, 0, ?, ?)
            """,
            (data.email, hash_password(data.password), data.name, default_image, token, expires),
        )
        conn.commit()
    except sqlite3.IntegrityError:
        conn.rollback()
        raise _email_taken_error(data.email)
    return {"user_id": cur.lastrowid, "verification_token": token}


def authenticate(conn: sqlite3.Connection, email: str, password: str, require_verified: bool) -> sqlite3.Row:
    row = conn.execute(
        "SELECT user_id, email, password_hash, is_admin, image, verification_token FROM users WHERE email = ? LIMIT 1",
        (email,),
    ).fetchone()
    if row is None:
        raise ApiError(422, "A user with this email could not be found")
    if require_verified and row["verification_token"]:
        raise ApiError(422, "Please verify your email before logging in")
    if not verify_password(row["password_hash"], password):
        raise ApiError(422, "Wrong password")
    return row


def verify_email(conn: sqlite3.Connection, token: str) -> int:
    row = conn.execute(
        "SELECT user_id, verification_expires FROM users WHERE verification_token = ? LIMIT 1",
        (token,),
    ).fetchone()
    if row is None:
        raise ApiError(422, "Token is invalid or has expired")
    expires = row["verification_expires"]
    if expires and datetime.fromisoformat(expires) < datetime.now(timezone.utc):
        raise ApiError(422, "Token has expired")
    conn.execute(
        """
        UPDATE users
        SET verification_token = NULL, verification_expires = NULL, updated_at = ?
        WHERE user_id = ?
        """,
        (utc_now(), row["user_id"]),
    )
    conn.commit()
    return int(row["user_id"])


def get_status(conn: sqlite3.Connection, user_id: int) -> str:
    return get_user_row(conn, user_id)["status"]


def update_status(conn: sqlite3.Connection, user_id: int, status: str) -> None:
    get_user_row(conn, user_id)
    conn.execute(
        "UPDATE users SET status = ?, updated_at = ? WHERE user_id = ?",
        (status, utc_now(), user_id),
    )
    conn.commit()


# ── Users (admin) ───────────────────────────────────────────────────────────


def list_users(conn: sqlite3.Connection) -> List[dict]:
    rows = conn.execute(f"SELECT {USER_COLUMNS} FROM users ORDER BY user_id").fetchall()
    return [user_row_to_dict(row) for row in rows]


def user_detail(conn: sqlite3.Connection, user_id: int) -> dict:
    """Public profile with the user's content and social graph."""
    user = user_row_to_dict(get_user_row(conn, user_id))

    user["questions"] = [
        {"_id": row["question_id"], "title": row["title"], "votes": row["votes"], "createdAt": row["created_at"]}
        for row in conn.execute(
            "SELECT question_id, title, votes, created_at FROM questions WHERE creator_id = ? ORDER BY question_id",
            (user_id,),
        )
    ]
    user["answers"] = [
        {"_id": row["answer_id"], "content": row["content"], "questionId": row["question_id"], "votes": row["votes"]}
        for row in conn.execute(
            "SELECT answer_id, content, question_id, votes FROM answers WHERE creator_id = ? ORDER BY answer_id",
            (user_id,),
        )
    ]
    user["tweets"] = [
        {"_id": row["tweet_id"], "text": row["text"], "image": row["image_url"], "createdAt": row["created_at"]}
        for row in conn.execute(
            "SELECT tweet_id, text, image_url, created_at FROM tweets WHERE creator_id = ? ORDER BY tweet_id DESC",
            (user_id,),
        )
    ]
    user["comments"] = [
        {"_id": row["comment_id"], "text": row["text"], "tweet": row["tweet_id"], "createdAt": row["created_at"]}
        for row in conn.execute(
            "SELECT comment_id, text, tweet_id, created_at FROM comments WHERE creator_id = ? ORDER BY comment_id DESC",
            (user_id,),
        )
    ]
    user["followers"] = _brief_users(conn, member_ids(conn, "follows", user_id))
    following = [
        row["following_id"]
        for row in conn.execute(
            "SELECT following_id FROM follows WHERE follower_id = ? ORDER BY rowid",
            (user_id,),
        )
    ]
    user["following"] = _brief_users(conn, following)
    return user


def create_user(conn: sqlite3.Connection, data: UserCreateIn, image: str) -> dict:
    if _email_exists(conn, data.email):
        raise _email_taken_error(data.email)
    cur = conn.execute(
        "INSERT INTO users (email, password_hash, name, image, is_admin) VALUES (?, ?, ?, ?, ?)",
        (data.email, hash_password(data.password), data.name, image, int(data.is_admin)),
    )
    conn.commit()
    return user_row_to_dict(get_user_row(conn, cur.lastrowid))


def update_user(conn: sqlite3.Connection, user_id: int, data: UserUpdateIn, image: Optional[str]) -> tuple[dict, Optional[str]]:
    """
    Apply the provided fields. Returns the updated user and the image URL that
    was replaced (if any) so the caller can remove the old file.
    """
    current = get_user_row(conn, user_id)
    updates: List[str] = []
    params: List[object] = []

    if data.email is not None and data.email != current["email"]:
        if _email_exists(conn, data.email, exclude_id=user_id):
            raise _email_taken_error(data.email)
        updates.append("email = ?")
        params.append(data.email)
    if data.name is not None:
        updates.append("name = ?")
        params.append(data.name)
    if data.status is not None:
        updates.append("status = ?")
        params.append(data.status)
    if data.is_admin is not None:
        updates.append("is_admin = ?")
        params.append(int(data.is_admin))
    if data.password:
        updates.append("password_hash = ?")
        params.append(hash_password(data.password))

    replaced = None
    if image is not None and image != current["image"]:
        updates.append("image = ?")
        params.append(image)
        replaced = current["image"]

    if updates:
        updates.append("updated_at = ?")
        params.append(utc_now())
        params.append(user_id)
        conn.execute(f"UPDATE users SET {', '.join(updates)} WHERE user_id = ?", tuple(params))
        conn.commit()
    return user_row_to_dict(get_user_row(conn, user_id)), replaced


def delete_user(conn: sqlite3.Connection, user_id: int) -> tuple[dict, List[str]]:
    """
    Delete the account; owned content goes with it through cascading keys.
    Returns the deleted user and the image URLs that are now orphaned.
    """
    user = user_row_to_dict(get_user_row(conn, user_id))
    images = [user["image"]] if user["image"] else []
    for table in ("products", "posts", "tweets"):
        images.extend(
            row["image_url"]
            for row in conn.execute(
                f"SELECT image_url FROM {table} WHERE creator_id = ? AND image_url IS NOT NULL",
                (user_id,),
            )
        )
    conn.execute("DELETE FROM users WHERE user_id = ?", (user_id,))
    conn.commit()
    return user, images


def toggle_follow(conn: sqlite3.Connection, follower_id: int, following_id: int) -> tuple[bool, dict]:
    if follower_id == following_id:
        raise ApiError(422, "You cannot follow yourself")
    get_user_row(conn, following_id)
    get_user_row(conn, follower_id)
    followed = toggle_membership(conn, "follows", following_id, follower_id)
    conn.commit()
    return followed, user_detail(conn, follower_id)
