from flask import Blueprint, jsonify

from backend.db import get_db
from backend.errors import handles_errors
from backend.security import current_user_id, is_auth, require_owner

from ..schemas import CommentIn, CommentUpdateIn, parse_payload
from ..services import social
from . import get_page, settings

bp = Blueprint("comments", __name__, url_prefix="/comments")


@bp.get("")
@handles_errors("Fetching comments failed")
def list_comments():
    data = social.list_comments(get_db(), get_page(), settings().comments_per_page)
    return jsonify({"message": "Comments fetched successfully", **data})


@bp.get("/<int:comment_id>")
@handles_errors("Fetching comment failed")
def get_comment(comment_id: int):
    return jsonify({"message": "Comment fetched successfully", "comment": social.comment_detail(get_db(), comment_id)})


@bp.post("")
@is_auth
@handles_errors("Comment creation failed")
def create_comment():
    data = parse_payload(CommentIn)
    comment = social.create_comment(get_db(), data.tweet, data.text, current_user_id())
    return jsonify({"message": "Comment created successfully", "comment": comment}), 201


@bp.put("/<int:comment_id>")
@is_auth
@handles_errors("Comment update failed")
def update_comment(comment_id: int):
    conn = get_db()
    require_owner(social.get_comment_row(conn, comment_id)["creator_id"])
    data = parse_payload(CommentUpdateIn)
    comment = social.update_comment(conn, comment_id, data.text)
    return jsonify({"message": "Comment updated successfully", "comment": comment})


@bp.put("/like/<int:comment_id>")
@is_auth
@handles_errors("Liking comment failed")
def like_comment(comment_id: int):
    liked, comment = social.like_comment(get_db(), comment_id, current_user_id())
    return jsonify({"message": "Comment liked successfully", "liked": liked, "comment": comment})


@bp.delete("/<int:comment_id>")
@is_auth
@handles_errors("Comment deletion failed")
def delete_comment(comment_id: int):
    conn = get_db()
    require_owner(social.get_comment_row(conn, comment_id)["creator_id"])
    social.delete_comment(conn, comment_id)
    return jsonify({"message": "Comment deleted successfully"})
