from flask import Blueprint, jsonify

from backend.db import get_db
from backend.errors import handles_errors
from backend.security import current_user_id, is_admin, is_auth
from backend.uploads import clear_image

from ..schemas import UserCreateIn, UserUpdateIn, parse_payload
from ..services import accounts
from . import pick_image, removed_on_error, settings, uploaded_image

bp = Blueprint("users", __name__, url_prefix="/users")


@bp.get("")
@is_admin
@handles_errors("Fetching users failed")
def list_users():
    return jsonify({"message": "Users fetched successfully", "users": accounts.list_users(get_db())})


@bp.get("/<int:user_id>")
@handles_errors("Fetching user failed")
def get_user(user_id: int):
    return jsonify({"message": "User fetched successfully", "user": accounts.user_detail(get_db(), user_id)})


@bp.post("")
@is_admin
@handles_errors("User creation failed")
def create_user():
    data = parse_payload(UserCreateIn)
    image = uploaded_image() or settings().default_user_image
    with removed_on_error(image):
        user = accounts.create_user(get_db(), data, image)
    return jsonify({"message": "User created successfully", "user": user}), 201


@bp.put("/<int:user_id>")
@is_admin
@handles_errors("User update failed")
def update_user(user_id: int):
    conn = get_db()
    current = accounts.get_user_row(conn, user_id)
    data = parse_payload(UserUpdateIn)
    image = pick_image(current["image"], data.image)
    fresh = image if image != current["image"] else None
    with removed_on_error(fresh):
        user, replaced = accounts.update_user(conn, user_id, data, image)
    clear_image(replaced)
    return jsonify({"message": "User updated successfully", "user": user})


@bp.delete("/<int:user_id>")
@is_admin
@handles_errors("User deletion failed")
def delete_user(user_id: int):
    user, images = accounts.delete_user(get_db(), user_id)
    for image in images:
        clear_image(image)
    return jsonify({"message": "User deleted successfully", "user": user})


@bp.put("/follow/<int:user_id>")
@is_auth
@handles_errors("Follow failed")
def follow(user_id: int):
    followed, user = accounts.toggle_follow(get_db(), current_user_id(), user_id)
    return jsonify({"message": "User followed/unfollowed successfully", "followed": followed, "user": user})
