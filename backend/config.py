"""
Runtime configuration for the course backend.

Values are resolved in this order (later wins):
built-in defaults, an optional YAML file, environment variables (``.env`` is
loaded first), and keyword overrides passed by the caller.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parent.parent


@dataclass
class Settings:
    jwt_secret: str = ""
    database_path: str = str(ROOT_DIR / "course_projects.db")
    jwt_expires_minutes: int = 60

    upload_folder: str = str(ROOT_DIR / "images")
    allowed_extensions: set[str] = field(default_factory=lambda: {"png", "jpg", "jpeg", "gif", "webp"})
    max_upload_mb: int = 8
    default_user_image: str = "images/default.png"

    cors_origins: str = "*"

    require_email_verification: bool = True
    verification_ttl_minutes: int = 60
    sendgrid_api_key: Optional[str] = None
    mail_sender: str = "no-reply@course-projects.local"
    frontend_url: str = "http://localhost:3000"

    admin_email: Optional[str] = None
    admin_password: Optional[str] = None

    log_level: str = "INFO"
    log_file: Optional[str] = None

    posts_per_page: int = 2
    questions_per_page: int = 50
    comments_per_page: int = 50
    products_per_page: int = 20


# Environment variable -> settings attribute
ENV_KEYS = {
    "JWT_SECRET": "jwt_secret",
    "DATABASE_PATH": "database_path",
    "JWT_EXPIRES_MINUTES": "jwt_expires_minutes",
    "UPLOAD_FOLDER": "upload_folder",
    "MAX_UPLOAD_MB": "max_upload_mb",
    "CORS_ORIGINS": "cors_origins",
    "REQUIRE_EMAIL_VERIFICATION": "require_email_verification",
    "VERIFICATION_TTL_MINUTES": "verification_ttl_minutes",
    "SENDGRID_API_KEY": "sendgrid_api_key",
    "MAIL_SENDER": "mail_sender",
    "FRONTEND_URL": "frontend_url",
    "ADMIN_EMAIL": "admin_email",
    "ADMIN_PASSWORD": "admin_password",
    "LOG_LEVEL": "log_level",
    "LOG_FILE": "log_file",
}

PATH_KEYS = ("database_path", "upload_folder", "log_file")


def _load_yaml(config_path: str | os.PathLike) -> dict:
    """Load configuration from YAML file"""
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, "r") as f:
        config = yaml.safe_load(f)

    return config or {}


def _coerce(current: Any, value: Any, annotation: str) -> Any:
    """Convert raw env/YAML values to the type of the default."""
    if value is None:
        return None
    if isinstance(current, bool) or annotation == "bool":
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(current, int):
        return int(value)
    if isinstance(current, set):
        if isinstance(value, str):
            value = value.split(",")
        return {str(v).strip().lower().lstrip(".") for v in value if str(v).strip()}
    return value


def load_settings(
    config_path: str | os.PathLike | None = None, require_secret: bool = True, **overrides: Any
) -> Settings:
    """
    Build the settings object, raising when mandatory values are missing.

    Relative file locations are taken from the project root. Tools that only
    read the database pass ``require_secret=False``.
    """
    load_dotenv()
    settings = Settings()
    types = {f.name: f.type for f in fields(Settings)}

    if config_path is None:
        env_path = os.getenv("APP_CONFIG")
        if env_path:
            config_path = env_path
        elif (ROOT_DIR / "config.yaml").exists():
            config_path = ROOT_DIR / "config.yaml"

    raw: dict[str, Any] = {}
    if config_path is not None:
        raw.update(_load_yaml(config_path))
    for env_name, attr in ENV_KEYS.items():
        if env_name in os.environ:
            raw[attr] = os.environ[env_name]
    raw.update(overrides)

    for key, value in raw.items():
        if key not in types:
            raise ValueError(f"Unknown configuration key: {key}")
        setattr(settings, key, _coerce(getattr(settings, key), value, str(types[key])))

    for key in PATH_KEYS:
        value = getattr(settings, key)
        if value and value != ":memory:" and not Path(value).is_absolute():
            setattr(settings, key, str((ROOT_DIR / value).resolve()))

    if require_secret and not settings.jwt_secret:
        raise RuntimeError("JWT_SECRET is required. Put it in your environment or .env file.")
    return settings
