from __future__ import annotations

import sqlite3
from typing import Mapping, Sequence

SCHEMA_SQL: Sequence[str] = (
    """
    CREATE TABLE IF NOT EXISTS users (
        user_id INTEGER PRIMARY KEY AUTOINCREMENT,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        name TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'I am new!',
        image TEXT,
        is_admin INTEGER NOT NULL DEFAULT 0,
        verification_token TEXT,
        verification_expires TEXT,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS follows (
        follower_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        following_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (follower_id, following_id)
    );
    """,
    # --- shop ---
    """
    CREATE TABLE IF NOT EXISTS products (
        product_id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        price REAL NOT NULL,
        description TEXT NOT NULL,
        image_url TEXT NOT NULL,
        creator_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS carts (
        cart_id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL UNIQUE REFERENCES users(user_id) ON DELETE CASCADE,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS cart_items (
        item_id INTEGER PRIMARY KEY AUTOINCREMENT,
        cart_id INTEGER NOT NULL REFERENCES carts(cart_id) ON DELETE CASCADE,
        product_id INTEGER NOT NULL REFERENCES products(product_id) ON DELETE CASCADE,
        quantity INTEGER NOT NULL,
        UNIQUE (cart_id, product_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS orders (
        order_id INTEGER PRIMARY KEY AUTOINCREMENT,
        creator_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS order_items (
        item_id INTEGER PRIMARY KEY AUTOINCREMENT,
        order_id INTEGER NOT NULL REFERENCES orders(order_id) ON DELETE CASCADE,
        product_id INTEGER REFERENCES products(product_id) ON DELETE SET NULL,
        name TEXT NOT NULL,
        price REAL NOT NULL,
        quantity INTEGER NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS posts (
        post_id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        image_url TEXT NOT NULL,
        creator_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
    """,
    # --- Q&A ---
    """
    CREATE TABLE IF NOT EXISTS tags (
        tag_id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        description TEXT NOT NULL DEFAULT '',
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS questions (
        question_id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        content TEXT NOT NULL,
        votes INTEGER NOT NULL DEFAULT 0,
        views INTEGER NOT NULL DEFAULT 0,
        creator_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS question_tags (
        question_id INTEGER NOT NULL REFERENCES questions(question_id) ON DELETE CASCADE,
        tag_id INTEGER NOT NULL REFERENCES tags(tag_id) ON DELETE CASCADE,
        PRIMARY KEY (question_id, tag_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS question_votes (
        question_id INTEGER NOT NULL REFERENCES questions(question_id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        vote TEXT NOT NULL CHECK (vote IN ('up', 'down')),
        PRIMARY KEY (question_id, user_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS answers (
        answer_id INTEGER PRIMARY KEY AUTOINCREMENT,
        content TEXT NOT NULL,
        votes INTEGER NOT NULL DEFAULT 0,
        question_id INTEGER NOT NULL REFERENCES questions(question_id) ON DELETE CASCADE,
        creator_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS answer_votes (
        answer_id INTEGER NOT NULL REFERENCES answers(answer_id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        vote TEXT NOT NULL CHECK (vote IN ('up', 'down')),
        PRIMARY KEY (answer_id, user_id)
    );
    """,
    # --- social ---
    """
    CREATE TABLE IF NOT EXISTS tweets (
        tweet_id INTEGER PRIMARY KEY AUTOINCREMENT,
        text TEXT NOT NULL,
        image_url TEXT,
        creator_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS tweet_likes (
        tweet_id INTEGER NOT NULL REFERENCES tweets(tweet_id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        PRIMARY KEY (tweet_id, user_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS tweet_retweets (
        tweet_id INTEGER NOT NULL REFERENCES tweets(tweet_id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        PRIMARY KEY (tweet_id, user_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS comments (
        comment_id INTEGER PRIMARY KEY AUTOINCREMENT,
        tweet_id INTEGER NOT NULL REFERENCES tweets(tweet_id) ON DELETE CASCADE,
        text TEXT NOT NULL,
        creator_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        created_at TEXT DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS comment_likes (
        comment_id INTEGER NOT NULL REFERENCES comments(comment_id) ON DELETE CASCADE,
        user_id INTEGER NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
        PRIMARY KEY (comment_id, user_id)
    );
    """,
)

INDEX_SQL: Sequence[str] = (
    "CREATE INDEX IF NOT EXISTS ix_products_creator ON products (creator_id);",
    "CREATE INDEX IF NOT EXISTS ix_orders_creator ON orders (creator_id);",
    "CREATE INDEX IF NOT EXISTS ix_answers_question ON answers (question_id);",
    "CREATE INDEX IF NOT EXISTS ix_comments_tweet ON comments (tweet_id);",
    "CREATE INDEX IF NOT EXISTS ix_users_verification ON users (verification_token);",
)


def init_db(conn: sqlite3.Connection) -> None:
    """Create tables and indexes if they do not yet exist."""
    for stmt in SCHEMA_SQL:
        conn.execute(stmt)
    for stmt in INDEX_SQL:
        conn.execute(stmt)
    conn.commit()


def ensure_admin_user(conn: sqlite3.Connection, email: str, password: str, hash_password) -> int:
    """Seed the configured admin account, or promote it if it already exists."""
    email = email.strip().lower()
    row = conn.execute(
        "SELECT user_id FROM users WHERE email = ? LIMIT 1",
        (email,),
    ).fetchone()
    if row:
        conn.execute(
            "UPDATE users SET is_admin = 1, verification_token = NULL, verification_expires = NULL WHERE user_id = ?",
            (row["user_id"],),
        )
        user_id = int(row["user_id"])
    else:
        cur = conn.execute(
            "INSERT INTO users (email, password_hash, name, is_admin) VALUES (?, ?, ?, 1)",
            (email, hash_password(password), "Admin"),
        )
        user_id = int(cur.lastrowid)
    conn.commit()
    return user_id


# ---------------------------------------------------------------------------
# Row -> API dict converters. The frontends read Mongo-style `_id` keys and
# camelCase fields, so the JSON keeps that shape.
# ---------------------------------------------------------------------------


def user_row_to_dict(row: Mapping[str, object]) -> dict:
    data = dict(row)
    return {
        "_id": data.get("user_id"),
        "email": data.get("email"),
        "name": data.get("name"),
        "status": data.get("status"),
        "image": data.get("image"),
        "isAdmin": bool(data.get("is_admin")),
        "createdAt": data.get("created_at"),
        "updatedAt": data.get("updated_at"),
    }


def creator_to_dict(row: Mapping[str, object], prefix: str = "creator_") -> dict | None:
    """Build the short `{_id, name, ...}` creator object from joined columns."""
    data = dict(row)
    if data.get(f"{prefix}id") is None:
        return None
    brief = {"_id": data.get(f"{prefix}id"), "name": data.get(f"{prefix}name")}
    for extra in ("email", "image"):
        key = f"{prefix}{extra}"
        if key in data:
            brief[extra] = data[key]
    return brief


def product_row_to_dict(row: Mapping[str, object]) -> dict:
    data = dict(row)
    return {
        "_id": data.get("product_id"),
        "name": data.get("name"),
        "price": float(data.get("price") or 0.0),
        "description": data.get("description"),
        "imageUrl": data.get("image_url"),
        "creator": data.get("creator_id"),
        "createdAt": data.get("created_at"),
        "updatedAt": data.get("updated_at"),
    }


def post_row_to_dict(row: Mapping[str, object]) -> dict:
    data = dict(row)
    return {
        "_id": data.get("post_id"),
        "title": data.get("title"),
        "content": data.get("content"),
        "imageUrl": data.get("image_url"),
        "creator": creator_to_dict(row) or data.get("creator_id"),
        "createdAt": data.get("created_at"),
        "updatedAt": data.get("updated_at"),
    }


def tag_row_to_dict(row: Mapping[str, object], question_ids: list[int] | None = None) -> dict:
    data = dict(row)
    tag = {
        "_id": data.get("tag_id"),
        "name": data.get("name"),
        "description": data.get("description") or "",
        "createdAt": data.get("created_at"),
        "updatedAt": data.get("updated_at"),
    }
    if question_ids is not None:
        tag["questions"] = question_ids
    return tag


def answer_row_to_dict(row: Mapping[str, object], voters: list[dict]) -> dict:
    data = dict(row)
    return {
        "_id": data.get("answer_id"),
        "content": data.get("content"),
        "votes": int(data.get("votes") or 0),
        "voters": voters,
        "questionId": data.get("question_id"),
        "creator": creator_to_dict(row) or data.get("creator_id"),
        "createdAt": data.get("created_at"),
        "updatedAt": data.get("updated_at"),
    }


def question_row_to_dict(
    row: Mapping[str, object],
    voters: list[dict],
    tags: list[dict],
    answers: list[dict],
) -> dict:
    data = dict(row)
    return {
        "_id": data.get("question_id"),
        "title": data.get("title"),
        "content": data.get("content"),
        "votes": int(data.get("votes") or 0),
        "voters": voters,
        "views": int(data.get("views") or 0),
        "tags": tags,
        "answers": answers,
        "creator": creator_to_dict(row) or data.get("creator_id"),
        "createdAt": data.get("created_at"),
        "updatedAt": data.get("updated_at"),
    }


def comment_row_to_dict(row: Mapping[str, object], likes: list[int]) -> dict:
    data = dict(row)
    return {
        "_id": data.get("comment_id"),
        "tweet": data.get("tweet_id"),
        "text": data.get("text"),
        "likes": likes,
        "creator": creator_to_dict(row) or data.get("creator_id"),
        "createdAt": data.get("created_at"),
        "updatedAt": data.get("updated_at"),
    }


def tweet_row_to_dict(
    row: Mapping[str, object],
    likes: list[int],
    retweets: list[int],
    comments: list[dict],
) -> dict:
    data = dict(row)
    return {
        "_id": data.get("tweet_id"),
        "text": data.get("text"),
        "image": data.get("image_url"),
        "likes": likes,
        "retweets": retweets,
        "comments": comments,
        "creator": creator_to_dict(row) or data.get("creator_id"),
        "createdAt": data.get("created_at"),
        "updatedAt": data.get("updated_at"),
    }
