from flask import Blueprint, jsonify

from backend.db import get_db
from backend.errors import handles_errors
from backend.security import is_admin, is_auth

from ..schemas import TagIn, parse_payload
from ..services import qa

bp = Blueprint("tags", __name__, url_prefix="/tags")


@bp.get("")
@handles_errors("Fetching tags failed")
def list_tags():
    return jsonify({"message": "Tags fetched successfully", "tags": qa.list_tags(get_db())})


@bp.post("")
@is_auth
@handles_errors("Tag creation failed")
def create_tag():
    tag = qa.create_tag(get_db(), parse_payload(TagIn))
    return jsonify({"message": "Tag created successfully", "tag": tag}), 201


@bp.put("/<int:tag_id>")
@is_auth
@handles_errors("Tag update failed")
def update_tag(tag_id: int):
    tag = qa.update_tag(get_db(), tag_id, parse_payload(TagIn))
    return jsonify({"message": "Tag updated successfully", "tag": tag})


@bp.delete("/<int:tag_id>")
@is_admin
@handles_errors("Tag deletion failed")
def delete_tag(tag_id: int):
    qa.delete_tag(get_db(), tag_id)
    return jsonify({"message": "Tag deleted successfully"})
