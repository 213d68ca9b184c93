from flask import Blueprint, jsonify

from backend.db import get_db
from backend.errors import handles_errors
from backend.security import current_user_id, is_auth, require_owner

from ..schemas import AnswerIn, AnswerUpdateIn, VoteIn, parse_payload
from ..services import qa

bp = Blueprint("answers", __name__, url_prefix="/answers")


@bp.get("/<int:question_id>")
@handles_errors("Fetching answers failed")
def list_answers(question_id: int):
    conn = get_db()
    qa.get_question_row(conn, question_id)
    return jsonify({"message": "Answers fetched successfully", "answers": qa.list_answers(conn, question_id)})


@bp.post("")
@is_auth
@handles_errors("Answer creation failed")
def create_answer():
    data = parse_payload(AnswerIn)
    answer = qa.create_answer(get_db(), data.question_id, data.content, current_user_id())
    return jsonify({"message": "Answer created successfully", "answer": answer}), 201


@bp.put("/<int:answer_id>")
@is_auth
@handles_errors("Answer update failed")
def update_answer(answer_id: int):
    conn = get_db()
    require_owner(qa.get_answer_row(conn, answer_id)["creator_id"])
    data = parse_payload(AnswerUpdateIn)
    answer = qa.update_answer(conn, answer_id, data.content)
    return jsonify({"message": "Answer updated successfully", "answer": answer})


@bp.put("/vote/<int:answer_id>")
@is_auth
@handles_errors("Voting failed")
def vote_answer(answer_id: int):
    data = parse_payload(VoteIn)
    answer = qa.vote_answer(get_db(), answer_id, current_user_id(), data.vote)
    return jsonify({"message": "Vote recorded successfully", "answer": answer})


@bp.delete("/<int:answer_id>")
@is_auth
@handles_errors("Answer deletion failed")
def delete_answer(answer_id: int):
    conn = get_db()
    require_owner(qa.get_answer_row(conn, answer_id)["creator_id"])
    qa.delete_answer(conn, answer_id)
    return jsonify({"message": "Answer deleted successfully"})
