from datetime import timedelta

import requests
from flask import Blueprint, current_app, jsonify

from backend.db import get_db
from backend.errors import handles_errors
from backend.mailer import MailClient, MailerNotConfigured
from backend.security import current_user_id, is_auth, issue_token

from ..schemas import LoginIn, SignupIn, StatusIn, parse_payload
from ..services import accounts
from . import settings

bp = Blueprint("auth", __name__, url_prefix="/auth")


def mail_client() -> MailClient:
    cfg = settings()
    return MailClient(cfg.sendgrid_api_key, cfg.mail_sender)


@bp.route("/signup", methods=["PUT", "POST"])
@handles_errors("Signup failed")
def signup():
    data = parse_payload(SignupIn)
    cfg = settings()
    ttl = timedelta(minutes=cfg.verification_ttl_minutes) if cfg.require_email_verification else None

    created = accounts.signup(get_db(), data, cfg.default_user_image, ttl)
    user_id = created["user_id"]
    token = created["verification_token"]

    if token is None:
        return jsonify({"message": "User created!", "userId": user_id}), 201

    try:
        mail_client().send_verification(data.email, f"{cfg.frontend_url}/verify/{token}")
    except (MailerNotConfigured, requests.RequestException):
        current_app.logger.warning("Verification mail to %s could not be sent", data.email, exc_info=True)
        return (
            jsonify(
                {
                    "message": "User created! (email sending failed, please contact support to verify your account).",
                    "userId": user_id,
                }
            ),
            201,
        )
    return jsonify({"message": "User created! Please check your email to verify your account.", "userId": user_id}), 201


@bp.post("/login")
@handles_errors("Login failed")
def login():
    data = parse_payload(LoginIn)
    row = accounts.authenticate(get_db(), data.email, data.password, settings().require_email_verification)
    token = issue_token(row["user_id"], row["email"])
    return jsonify(
        {
            "token": token,
            "userId": row["user_id"],
            "email": row["email"],
            "isAdmin": bool(row["is_admin"]),
            "image": row["image"],
        }
    )


@bp.get("/verify/<token>")
@handles_errors("Email verification failed")
def verify(token: str):
    user_id = accounts.verify_email(get_db(), token)
    return jsonify({"message": "Email verified successfully!", "userId": user_id})


@bp.get("/status")
@is_auth
@handles_errors("Fetching status failed")
def get_status():
    return jsonify({"status": accounts.get_status(get_db(), current_user_id())})


@bp.put("/status")
@is_auth
@handles_errors("Updating status failed")
def update_status():
    data = parse_payload(StatusIn)
    accounts.update_status(get_db(), current_user_id(), data.status)
    return jsonify({"message": "User status updated"})
