from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from flask import Flask
from flask_cors import CORS

from backend.config import Settings, load_settings
from backend.db import close_db, connect
from backend.errors import register_error_handlers
from backend.logging_setup import configure_logging
from backend.security import hash_password, jwt

from .models import ensure_admin_user, init_db
from .routes import register_blueprints


def create_app(settings: Optional[Settings] = None, **overrides: Any) -> Flask:
    """Build the API application. ``overrides`` are forwarded to ``load_settings``."""
    if settings is None:
        settings = load_settings(**overrides)

    app = Flask(__name__)
    app.config.update(
        SETTINGS=settings,
        DATABASE_PATH=settings.database_path,
        JWT_SECRET_KEY=settings.jwt_secret,
        JWT_ACCESS_TOKEN_EXPIRES=timedelta(minutes=settings.jwt_expires_minutes),
        UPLOAD_FOLDER=settings.upload_folder,
        ALLOWED_EXTENSIONS=settings.allowed_extensions,
        DEFAULT_USER_IMAGE=settings.default_user_image,
        MAX_CONTENT_LENGTH=settings.max_upload_mb * 1024 * 1024,
    )

    app.json.sort_keys = False

    configure_logging(app, settings)
    CORS(
        app,
        origins=settings.cors_origins,
        methods=["OPTIONS", "GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )
    jwt.init_app(app)
    register_error_handlers(app)
    app.teardown_appcontext(close_db)

    Path(settings.upload_folder).mkdir(parents=True, exist_ok=True)
    conn = connect(settings.database_path)
    try:
        init_db(conn)
        if settings.admin_email and settings.admin_password:
            ensure_admin_user(conn, settings.admin_email, settings.admin_password, hash_password)
            app.logger.info("Admin account %s is ready", settings.admin_email)
    finally:
        conn.close()

    register_blueprints(app)
    return app
