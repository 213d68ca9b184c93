from __future__ import annotations

from functools import wraps
from typing import Callable

from flask import g, jsonify
from flask_jwt_extended import JWTManager, create_access_token, get_jwt_identity, verify_jwt_in_request
from werkzeug.security import check_password_hash, generate_password_hash

from .db import get_db
from .errors import ApiError

jwt = JWTManager()


@jwt.unauthorized_loader
def _missing_token(reason: str):
    return jsonify({"message": "Not authenticated."}), 401


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return jsonify({"message": "Token has expired."}), 401


@jwt.invalid_token_loader
def _invalid_token(reason: str):
    return jsonify({"message": "Token was not valid."}), 401


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(stored_hash: str | None, password: str) -> bool:
    if not stored_hash:
        return False
    try:
        return check_password_hash(stored_hash, password)
    except ValueError:
        return False


def issue_token(user_id: int, email: str) -> str:
    """Sign an access token carrying the user id (as identity) and email."""
    return create_access_token(identity=str(user_id), additional_claims={"email": email})


def current_user_id() -> int:
    """Id of the authenticated user; only valid inside an ``is_auth`` view."""
    return g.user_id


def is_auth(view: Callable) -> Callable:
    """Require a valid bearer token and remember the caller on ``g``."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        try:
            g.user_id = int(get_jwt_identity())
        except (TypeError, ValueError):
            raise ApiError(401, "Token was not valid.")
        return view(*args, **kwargs)

    return wrapper


def is_admin(view: Callable) -> Callable:
    """Require an authenticated caller whose account carries the admin flag."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        row = get_db().execute(
            "SELECT is_admin FROM users WHERE user_id = ?",
            (current_user_id(),),
        ).fetchone()
        if row is None:
            raise ApiError(404, "User not found.")
        if not row["is_admin"]:
            raise ApiError(403, "Access denied. Admins only.")
        g.is_admin = True
        return view(*args, **kwargs)

    return is_auth(wrapper)


def caller_is_admin() -> bool:
    if "is_admin" not in g:
        row = get_db().execute(
            "SELECT is_admin FROM users WHERE user_id = ?",
            (current_user_id(),),
        ).fetchone()
        g.is_admin = bool(row and row["is_admin"])
    return g.is_admin


def require_owner(owner_id: int | None, message: str = "Not authorized") -> None:
    """Allow the creator of a resource, or any admin, to modify it."""
    if owner_id == current_user_id():
        return
    if caller_is_admin():
        return
    raise ApiError(403, message)
