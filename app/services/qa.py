from __future__ import annotations

import sqlite3
from typing import Dict, Iterable, List, Optional

from backend.errors import ApiError

from ..models import answer_row_to_dict, question_row_to_dict, tag_row_to_dict
from ..schemas import QuestionIn, TagIn
from .common import apply_vote, page_offset, utc_now, voters_for

QUESTION_SELECT = """
    SELECT q.*, u.name AS creator_name
    FROM questions q
    JOIN users u ON u.user_id = q.creator_id
"""

ANSWER_SELECT = """
    SELECT a.*, u.name AS creator_name, u.email AS creator_email
    FROM answers a
    JOIN users u ON u.user_id = a.creator_id
"""


# ── Tags ────────────────────────────────────────────────────────────────────


def _tag_question_ids(conn: sqlite3.Connection, tag_id: int) -> List[int]:
    rows = conn.execute(
        "SELECT question_id FROM question_tags WHERE tag_id = ? ORDER BY question_id",
        (tag_id,),
    ).fetchall()
    return [row["question_id"] for row in rows]


def get_tag_row(conn: sqlite3.Connection, tag_id: int) -> sqlite3.Row:
    row = conn.execute("SELECT * FROM tags WHERE tag_id = ?", (tag_id,)).fetchone()
    if row is None:
        raise ApiError(404, f"Could not find the tag with id: {tag_id}")
    return row


def tag_detail(conn: sqlite3.Connection, tag_id: int) -> dict:
    return tag_row_to_dict(get_tag_row(conn, tag_id), _tag_question_ids(conn, tag_id))


def list_tags(conn: sqlite3.Connection) -> List[dict]:
    rows = conn.execute("SELECT * FROM tags ORDER BY name").fetchall()
    return [tag_row_to_dict(row, _tag_question_ids(conn, row["tag_id"])) for row in rows]


def _tag_name_taken(conn: sqlite3.Connection, name: str, exclude_id: Optional[int] = None) -> bool:
    row = conn.execute("SELECT tag_id FROM tags WHERE name = ? COLLATE NOCASE", (name,)).fetchone()
    return row is not None and row["tag_id"] != exclude_id


def create_tag(conn: sqlite3.Connection, data: TagIn) -> dict:
    if _tag_name_taken(conn, data.name):
        raise ApiError(422, "Tag already exists")
    now = utc_now()
    cur = conn.execute(
        "INSERT INTO tags (name, description, created_at, updated_at) VALUES (?, ?, ?, ?)",
        (data.name, data.description, now, now),
    )
    conn.commit()
    return tag_detail(conn, cur.lastrowid)


def update_tag(conn: sqlite3.Connection, tag_id: int, data: TagIn) -> dict:
    get_tag_row(conn, tag_id)
    if _tag_name_taken(conn, data.name, exclude_id=tag_id):
        raise ApiError(422, "Tag already exists")
    conn.execute(
        "UPDATE tags SET name = ?, description = ?, updated_at = ? WHERE tag_id = ?",
        (data.name, data.description, utc_now(), tag_id),
    )
    conn.commit()
    return tag_detail(conn, tag_id)


def delete_tag(conn: sqlite3.Connection, tag_id: int) -> None:
    deleted = conn.execute("DELETE FROM tags WHERE tag_id = ?", (tag_id,)).rowcount
    if not deleted:
        raise ApiError(404, f"Could not find the tag with id: {tag_id}")
    conn.commit()


# ── Answers ─────────────────────────────────────────────────────────────────


def _answer_dict(conn: sqlite3.Connection, row: sqlite3.Row) -> dict:
    return answer_row_to_dict(row, voters_for(conn, "answer", row["answer_id"]))


def get_answer_row(conn: sqlite3.Connection, answer_id: int) -> sqlite3.Row:
    row = conn.execute(f"{ANSWER_SELECT} WHERE a.answer_id = ?", (answer_id,)).fetchone()
    if row is None:
        raise ApiError(404, "Answer not found")
    return row


def answer_detail(conn: sqlite3.Connection, answer_id: int) -> dict:
    return _answer_dict(conn, get_answer_row(conn, answer_id))


def list_answers(conn: sqlite3.Connection, question_id: int) -> List[dict]:
    rows = conn.execute(
        f"{ANSWER_SELECT} WHERE a.question_id = ? ORDER BY a.answer_id",
        (question_id,),
    ).fetchall()
    return [_answer_dict(conn, row) for row in rows]


def create_answer(conn: sqlite3.Connection, question_id: int, content: str, creator_id: int) -> dict:
    get_question_row(conn, question_id)
    now = utc_now()
    cur = conn.execute(
        """
        INSERT INTO answers (content, question_id, creator_id, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (content, question_id, creator_id, now, now),
    )
    conn.commit()
    return answer_detail(conn, cur.lastrowid)


def update_answer(conn: sqlite3.Connection, answer_id: int, content: str) -> dict:
    conn.execute(
        "UPDATE answers SET content = ?, updated_at = ? WHERE answer_id = ?",
        (content, utc_now(), answer_id),
    )
    conn.commit()
    return answer_detail(conn, answer_id)


def delete_answer(conn: sqlite3.Connection, answer_id: int) -> None:
    conn.execute("DELETE FROM answers WHERE answer_id = ?", (answer_id,))
    conn.commit()


def vote_answer(conn: sqlite3.Connection, answer_id: int, user_id: int, vote: str) -> dict:
    get_answer_row(conn, answer_id)
    apply_vote(conn, "answer", answer_id, user_id, vote)
    conn.commit()
    return answer_detail(conn, answer_id)


# ── Questions ───────────────────────────────────────────────────────────────


def get_question_row(conn: sqlite3.Connection, question_id: int) -> sqlite3.Row:
    row = conn.execute(f"{QUESTION_SELECT} WHERE q.question_id = ?", (question_id,)).fetchone()
    if row is None:
        raise ApiError(404, f"Could not find the question with id: {question_id}")
    return row


def _question_tags(conn: sqlite3.Connection, question_id: int) -> List[dict]:
    rows = conn.execute(
        """
        SELECT t.*
        FROM question_tags qt
        JOIN tags t ON t.tag_id = qt.tag_id
        WHERE qt.question_id = ?
        ORDER BY t.name
        """,
        (question_id,),
    ).fetchall()
    return [tag_row_to_dict(row) for row in rows]


def _question_dict(conn: sqlite3.Connection, row: sqlite3.Row) -> dict:
    question_id = row["question_id"]
    return question_row_to_dict(
        row,
        voters=voters_for(conn, "question", question_id),
        tags=_question_tags(conn, question_id),
        answers=list_answers(conn, question_id),
    )


def question_detail(conn: sqlite3.Connection, question_id: int) -> dict:
    return _question_dict(conn, get_question_row(conn, question_id))


def list_questions(conn: sqlite3.Connection, page: int, per_page: int) -> Dict[str, object]:
    total = conn.execute("SELECT COUNT(*) AS cnt FROM questions").fetchone()["cnt"]
    rows = conn.execute(
        f"{QUESTION_SELECT} ORDER BY q.question_id DESC LIMIT ? OFFSET ?",
        (per_page, page_offset(page, per_page)),
    ).fetchall()
    return {"questions": [_question_dict(conn, row) for row in rows], "total": total}


def questions_by_tag(conn: sqlite3.Connection, tag_id: int) -> List[dict]:
    rows = conn.execute(
        f"""
        {QUESTION_SELECT}
        JOIN question_tags qt ON qt.question_id = q.question_id
        WHERE qt.tag_id = ?
        ORDER BY q.question_id DESC
        """,
        (tag_id,),
    ).fetchall()
    if not rows:
        raise ApiError(404, f"No questions found with the tag id: {tag_id}")
    return [_question_dict(conn, row) for row in rows]


def _check_tags(conn: sqlite3.Connection, tag_ids: Iterable[int]) -> List[int]:
    unique = list(dict.fromkeys(tag_ids))
    for tag_id in unique:
        get_tag_row(conn, tag_id)
    return unique


def _set_question_tags(conn: sqlite3.Connection, question_id: int, tag_ids: List[int]) -> None:
    conn.execute("DELETE FROM question_tags WHERE question_id = ?", (question_id,))
    conn.executemany(
        "INSERT INTO question_tags (question_id, tag_id) VALUES (?, ?)",
        [(question_id, tag_id) for tag_id in tag_ids],
    )


def create_question(conn: sqlite3.Connection, data: QuestionIn, creator_id: int) -> dict:
    tag_ids = _check_tags(conn, data.tags)
    now = utc_now()
    cur = conn.execute(
        """
        INSERT INTO questions (title, content, creator_id, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (data.title, data.content, creator_id, now, now),
    )
    _set_question_tags(conn, cur.lastrowid, tag_ids)
    conn.commit()
    return question_detail(conn, cur.lastrowid)


def view_question(conn: sqlite3.Connection, question_id: int) -> dict:
    """Fetch a question and count the view."""
    get_question_row(conn, question_id)
    conn.execute("UPDATE questions SET views = views + 1 WHERE question_id = ?", (question_id,))
    conn.commit()
    return question_detail(conn, question_id)


def update_question(conn: sqlite3.Connection, question_id: int, data: QuestionIn) -> dict:
    tag_ids = _check_tags(conn, data.tags)
    conn.execute(
        "UPDATE questions SET title = ?, content = ?, updated_at = ? WHERE question_id = ?",
        (data.title, data.content, utc_now(), question_id),
    )
    _set_question_tags(conn, question_id, tag_ids)
    conn.commit()
    return question_detail(conn, question_id)


def delete_question(conn: sqlite3.Connection, question_id: int) -> dict:
    question = question_detail(conn, question_id)
    conn.execute("DELETE FROM questions WHERE question_id = ?", (question_id,))
    conn.commit()
    return question


def vote_question(conn: sqlite3.Connection, question_id: int, user_id: int, vote: str) -> dict:
    get_question_row(conn, question_id)
    apply_vote(conn, "question", question_id, user_id, vote)
    conn.commit()
    return question_detail(conn, question_id)
