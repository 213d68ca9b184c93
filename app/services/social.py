from __future__ import annotations

import sqlite3
from typing import Dict, List, Optional

from backend.errors import ApiError

from ..models import comment_row_to_dict, tweet_row_to_dict
from .common import member_ids, page_offset, toggle_membership, utc_now

TWEET_SELECT = """
    SELECT t.*, u.name AS creator_name, u.image AS creator_image
    FROM tweets t
    JOIN users u ON u.user_id = t.creator_id
"""

COMMENT_SELECT = """
    SELECT c.*, u.name AS creator_name, u.image AS creator_image
    FROM comments c
    JOIN users u ON u.user_id = c.creator_id
"""


# ── Comments ────────────────────────────────────────────────────────────────


def _comment_dict(conn: sqlite3.Connection, row: sqlite3.Row) -> dict:
    return comment_row_to_dict(row, member_ids(conn, "comment_likes", row["comment_id"]))


def get_comment_row(conn: sqlite3.Connection, comment_id: int) -> sqlite3.Row:
    row = conn.execute(f"{COMMENT_SELECT} WHERE c.comment_id = ?", (comment_id,)).fetchone()
    if row is None:
        raise ApiError(404, "Comment not found")
    return row


def comment_detail(conn: sqlite3.Connection, comment_id: int) -> dict:
    return _comment_dict(conn, get_comment_row(conn, comment_id))


def _tweet_comments(conn: sqlite3.Connection, tweet_id: int) -> List[dict]:
    rows = conn.execute(
        f"{COMMENT_SELECT} WHERE c.tweet_id = ? ORDER BY c.comment_id DESC",
        (tweet_id,),
    ).fetchall()
    return [_comment_dict(conn, row) for row in rows]


def list_comments(conn: sqlite3.Connection, page: int, per_page: int) -> Dict[str, object]:
    total = conn.execute("SELECT COUNT(*) AS cnt FROM comments").fetchone()["cnt"]
    rows = conn.execute(
        f"{COMMENT_SELECT} ORDER BY c.comment_id DESC LIMIT ? OFFSET ?",
        (per_page, page_offset(page, per_page)),
    ).fetchall()
    return {"comments": [_comment_dict(conn, row) for row in rows], "total": total}


def create_comment(conn: sqlite3.Connection, tweet_id: int, text: str, creator_id: int) -> dict:
    get_tweet_row(conn, tweet_id)
    now = utc_now()
    cur = conn.execute(
        """
        INSERT INTO comments (tweet_id, text, creator_id, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (tweet_id, text, creator_id, now, now),
    )
    conn.commit()
    return comment_detail(conn, cur.lastrowid)


def update_comment(conn: sqlite3.Connection, comment_id: int, text: str) -> dict:
    conn.execute(
        "UPDATE comments SET text = ?, updated_at = ? WHERE comment_id = ?",
        (text, utc_now(), comment_id),
    )
    conn.commit()
    return comment_detail(conn, comment_id)


def like_comment(conn: sqlite3.Connection, comment_id: int, user_id: int) -> tuple[bool, dict]:
    get_comment_row(conn, comment_id)
    liked = toggle_membership(conn, "comment_likes", comment_id, user_id)
    conn.commit()
    return liked, comment_detail(conn, comment_id)


def delete_comment(conn: sqlite3.Connection, comment_id: int) -> None:
    conn.execute("DELETE FROM comments WHERE comment_id = ?", (comment_id,))
    conn.commit()


# ── Tweets ──────────────────────────────────────────────────────────────────


def get_tweet_row(conn: sqlite3.Connection, tweet_id: int) -> sqlite3.Row:
    row = conn.execute(f"{TWEET_SELECT} WHERE t.tweet_id = ?", (tweet_id,)).fetchone()
    if row is None:
        raise ApiError(404, "Tweet not found")
    return row


def _tweet_dict(conn: sqlite3.Connection, row: sqlite3.Row) -> dict:
    tweet_id = row["tweet_id"]
    return tweet_row_to_dict(
        row,
        likes=member_ids(conn, "tweet_likes", tweet_id),
        retweets=member_ids(conn, "tweet_retweets", tweet_id),
        comments=_tweet_comments(conn, tweet_id),
    )


def tweet_detail(conn: sqlite3.Connection, tweet_id: int) -> dict:
    return _tweet_dict(conn, get_tweet_row(conn, tweet_id))


def list_tweets(conn: sqlite3.Connection) -> List[dict]:
    rows = conn.execute(f"{TWEET_SELECT} ORDER BY t.created_at DESC, t.tweet_id DESC").fetchall()
    return [_tweet_dict(conn, row) for row in rows]


def create_tweet(conn: sqlite3.Connection, text: str, image_url: Optional[str], creator_id: int) -> dict:
    now = utc_now()
    cur = conn.execute(
        "INSERT INTO tweets (text, image_url, creator_id, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
        (text, image_url, creator_id, now, now),
    )
    conn.commit()
    return tweet_detail(conn, cur.lastrowid)


def update_tweet(conn: sqlite3.Connection, tweet_id: int, text: str, image_url: Optional[str]) -> dict:
    conn.execute(
        "UPDATE tweets SET text = ?, image_url = ?, updated_at = ? WHERE tweet_id = ?",
        (text, image_url, utc_now(), tweet_id),
    )
    conn.commit()
    return tweet_detail(conn, tweet_id)


def toggle_tweet(conn: sqlite3.Connection, tweet_id: int, user_id: int, table: str) -> tuple[bool, dict]:
    """Like or retweet toggle; ``table`` is ``tweet_likes`` or ``tweet_retweets``."""
    get_tweet_row(conn, tweet_id)
    added = toggle_membership(conn, table, tweet_id, user_id)
    conn.commit()
    return added, tweet_detail(conn, tweet_id)


def delete_tweet(conn: sqlite3.Connection, tweet_id: int) -> None:
    conn.execute("DELETE FROM tweets WHERE tweet_id = ?", (tweet_id,))
    conn.commit()
