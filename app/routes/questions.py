from flask import Blueprint, jsonify

from backend.db import get_db
from backend.errors import handles_errors
from backend.security import current_user_id, is_auth, require_owner

from ..schemas import QuestionIn, VoteIn, parse_payload
from ..services import qa
from . import get_page, settings

bp = Blueprint("questions", __name__)


@bp.get("/questions")
@handles_errors("Fetching questions failed")
def list_questions():
    data = qa.list_questions(get_db(), get_page(), settings().questions_per_page)
    return jsonify({"message": "Questions fetched successfully", **data})


@bp.get("/questions/<int:question_id>")
@handles_errors("Fetching question failed")
def get_question(question_id: int):
    return jsonify({"message": "Question fetched", "question": qa.view_question(get_db(), question_id)})


@bp.get("/question/<int:tag_id>")
@handles_errors("Fetching questions failed")
def questions_by_tag(tag_id: int):
    questions = qa.questions_by_tag(get_db(), tag_id)
    return jsonify({"message": "Questions fetched successfully", "questions": questions})


@bp.post("/questions")
@is_auth
@handles_errors("Question creation failed")
def create_question():
    data = parse_payload(QuestionIn)
    question = qa.create_question(get_db(), data, current_user_id())
    return jsonify({"message": "Question created successfully", "question": question}), 201


@bp.put("/questions/<int:question_id>")
@is_auth
@handles_errors("Question update failed")
def update_question(question_id: int):
    conn = get_db()
    require_owner(qa.get_question_row(conn, question_id)["creator_id"])
    data = parse_payload(QuestionIn)
    question = qa.update_question(conn, question_id, data)
    return jsonify({"message": "Question updated successfully", "question": question})


@bp.put("/questions/vote/<int:question_id>")
@is_auth
@handles_errors("Voting failed")
def vote_question(question_id: int):
    data = parse_payload(VoteIn)
    question = qa.vote_question(get_db(), question_id, current_user_id(), data.vote)
    return jsonify({"message": "Vote recorded successfully", "question": question})


@bp.delete("/questions/<int:question_id>")
@is_auth
@handles_errors("Question deletion failed")
def delete_question(question_id: int):
    conn = get_db()
    require_owner(qa.get_question_row(conn, question_id)["creator_id"])
    question = qa.delete_question(conn, question_id)
    return jsonify({"message": "Question deleted successfully", "question": question})
