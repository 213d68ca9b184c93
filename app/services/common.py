from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Dict, List, Tuple

from backend.errors import ApiError

# Tables whose membership rows record "user X likes/retweets/follows Y".
MEMBERSHIP_TABLES: Dict[str, Tuple[str, str]] = {
    "tweet_likes": ("tweet_id", "user_id"),
    "tweet_retweets": ("tweet_id", "user_id"),
    "comment_likes": ("comment_id", "user_id"),
    "follows": ("following_id", "follower_id"),
}

# (item table, item key, votes table)
VOTE_TABLES: Dict[str, Tuple[str, str, str]] = {
    "question": ("questions", "question_id", "question_votes"),
    "answer": ("answers", "answer_id", "answer_votes"),
}

VOTE_DELTA = {"up": 1, "down": -1}


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def page_offset(page: int, per_page: int) -> int:
    return (max(page, 1) - 1) * per_page


def member_ids(conn: sqlite3.Connection, table: str, key: int) -> List[int]:
    """User ids attached to ``key`` in a membership table, in insertion order."""
    key_col, member_col = MEMBERSHIP_TABLES[table]
    rows = conn.execute(
        f"SELECT {member_col} AS member FROM {table} WHERE {key_col} = ? ORDER BY rowid",
        (key,),
    ).fetchall()
    return [row["member"] for row in rows]


def toggle_membership(conn: sqlite3.Connection, table: str, key: int, user_id: int) -> bool:
    """Add ``user_id`` to the set when absent, remove it otherwise. Returns True when added."""
    key_col, member_col = MEMBERSHIP_TABLES[table]
    removed = conn.execute(
        f"DELETE FROM {table} WHERE {key_col} = ? AND {member_col} = ?",
        (key, user_id),
    ).rowcount
    if removed:
        return False
    conn.execute(
        f"INSERT INTO {table} ({key_col}, {member_col}) VALUES (?, ?)",
        (key, user_id),
    )
    return True


def voters_for(conn: sqlite3.Connection, kind: str, item_id: int) -> List[dict]:
    _, key_col, votes_table = VOTE_TABLES[kind]
    rows = conn.execute(
        f"SELECT user_id, vote FROM {votes_table} WHERE {key_col} = ? ORDER BY rowid",
        (item_id,),
    ).fetchall()
    return [{"userId": row["user_id"], "vote": row["vote"]} for row in rows]


def apply_vote(conn: sqlite3.Connection, kind: str, item_id: int, user_id: int, vote: str) -> int:
    """
    Record an up/down vote and adjust the item's counter.

    A first vote moves the counter by one. Switching sides moves it by two,
    because the earlier vote is undone too. Repeating the same vote is
    rejected with a 403. Returns the counter delta that was applied.
    """
    table, key_col, votes_table = VOTE_TABLES[kind]
    existing = conn.execute(
        f"SELECT vote FROM {votes_table} WHERE {key_col} = ? AND user_id = ?",
        (item_id, user_id),
    ).fetchone()

    if existing is not None:
        if existing["vote"] == vote:
            raise ApiError(403, "Vote not changed")
        delta = 2 * VOTE_DELTA[vote]
        conn.execute(
            f"UPDATE {votes_table} SET vote = ? WHERE {key_col} = ? AND user_id = ?",
            (vote, item_id, user_id),
        )
    else:
        delta = VOTE_DELTA[vote]
        conn.execute(
            f"INSERT INTO {votes_table} ({key_col}, user_id, vote) VALUES (?, ?, ?)",
            (item_id, user_id, vote),
        )

    conn.execute(
        f"UPDATE {table} SET votes = votes + ? WHERE {key_col} = ?",
        (delta, item_id),
    )
    return delta
