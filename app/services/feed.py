from __future__ import annotations

import sqlite3
from typing import Dict

from backend.errors import ApiError

from ..models import post_row_to_dict
from ..schemas import PostIn
from .common import page_offset, utc_now

POST_SELECT = """
    SELECT p.*, u.name AS creator_name
    FROM posts p
    JOIN users u ON u.user_id = p.creator_id
"""


def get_post_row(conn: sqlite3.Connection, post_id: int) -> sqlite3.Row:
    row = conn.execute(f"{POST_SELECT} WHERE p.post_id = ?", (post_id,)).fetchone()
    if row is None:
        raise ApiError(404, f"Could not find the post with id: {post_id}")
    return row


def list_posts(conn: sqlite3.Connection, page: int, per_page: int) -> Dict[str, object]:
    total = conn.execute("SELECT COUNT(*) AS cnt FROM posts").fetchone()["cnt"]
    rows = conn.execute(
        f"{POST_SELECT} ORDER BY p.post_id LIMIT ? OFFSET ?",
        (per_page, page_offset(page, per_page)),
    ).fetchall()
    return {"posts": [post_row_to_dict(row) for row in rows], "totalItems": total}


def create_post(conn: sqlite3.Connection, data: PostIn, image_url: str, creator_id: int) -> dict:
    now = utc_now()
    cur = conn.execute(
        """
        INSERT INTO posts (title, content, image_url, creator_id, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (data.title, data.content, image_url, creator_id, now, now),
    )
    conn.commit()
    return post_row_to_dict(get_post_row(conn, cur.lastrowid))


def update_post(conn: sqlite3.Connection, post_id: int, data: PostIn, image_url: str) -> dict:
    conn.execute(
        "UPDATE posts SET title = ?, content = ?, image_url = ?, updated_at = ? WHERE post_id = ?",
        (data.title, data.content, image_url, utc_now(), post_id),
    )
    conn.commit()
    return post_row_to_dict(get_post_row(conn, post_id))


def delete_post(conn: sqlite3.Connection, post_id: int) -> None:
    conn.execute("DELETE FROM posts WHERE post_id = ?", (post_id,))
    conn.commit()
