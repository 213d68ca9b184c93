from flask import Blueprint, jsonify

from backend.db import get_db
from backend.errors import ApiError, handles_errors
from backend.security import current_user_id, is_auth, require_owner
from backend.uploads import clear_image

from ..models import post_row_to_dict
from ..schemas import PostIn, parse_payload
from ..services import feed
from . import get_page, pick_image, removed_on_error, settings, uploaded_image

bp = Blueprint("feed", __name__, url_prefix="/feed")


@bp.get("/posts")
@is_auth
@handles_errors("Fetching posts failed")
def list_posts():
    data = feed.list_posts(get_db(), get_page(), settings().posts_per_page)
    return jsonify({"message": "Posts fetched successfully", **data})


@bp.post("/posts")
@is_auth
@handles_errors("Post creation failed")
def create_post():
    data = parse_payload(PostIn)
    image_url = uploaded_image()
    if not image_url:
        raise ApiError(422, "No image provided")
    with removed_on_error(image_url):
        post = feed.create_post(get_db(), data, image_url, current_user_id())
    return jsonify({"message": "Post created successfully", "post": post}), 201


@bp.get("/posts/<int:post_id>")
@is_auth
@handles_errors("Fetching post failed")
def get_post(post_id: int):
    return jsonify({"message": "Post fetched", "post": post_row_to_dict(feed.get_post_row(get_db(), post_id))})


@bp.put("/posts/<int:post_id>")
@is_auth
@handles_errors("Post update failed")
def update_post(post_id: int):
    conn = get_db()
    current = feed.get_post_row(conn, post_id)
    require_owner(current["creator_id"])
    data = parse_payload(PostIn)
    image_url = pick_image(current["image_url"], data.image)
    if not image_url:
        raise ApiError(422, "No file picked")

    fresh = image_url if image_url != current["image_url"] else None
    with removed_on_error(fresh):
        post = feed.update_post(conn, post_id, data, image_url)
    if image_url != current["image_url"]:
        clear_image(current["image_url"])
    return jsonify({"message": "Post updated successfully", "post": post})


@bp.delete("/posts/<int:post_id>")
@is_auth
@handles_errors("Post deletion failed")
def delete_post(post_id: int):
    conn = get_db()
    current = feed.get_post_row(conn, post_id)
    require_owner(current["creator_id"])
    feed.delete_post(conn, post_id)
    clear_image(current["image_url"])
    return jsonify({"message": "Post deleted successfully"})
