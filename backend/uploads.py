from __future__ import annotations

import os
from pathlib import Path
from uuid import uuid4

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from .errors import ApiError

URL_PREFIX = "images"


def upload_folder() -> Path:
    return Path(current_app.config["UPLOAD_FOLDER"])


def _allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    allowed = current_app.config["ALLOWED_EXTENSIONS"]
    return "." in filename and filename.rsplit(".", 1)[1].lower() in allowed


def save_image(file: FileStorage) -> str:
    """Store an uploaded image under a unique name and return its public URL."""
    if not file.filename:
        raise ApiError(422, "No file selected")
    if not _allowed_file(file.filename):
        allowed = ", ".join(sorted(current_app.config["ALLOWED_EXTENSIONS"]))
        raise ApiError(422, f"File type not allowed. Allowed: {allowed}")

    ext = file.filename.rsplit(".", 1)[1].lower()
    unique_filename = f"{uuid4().hex}.{ext}"
    folder = upload_folder()
    folder.mkdir(parents=True, exist_ok=True)
    file.save(str(folder / unique_filename))
    return f"{URL_PREFIX}/{unique_filename}"


def image_path(image_url: str) -> Path | None:
    """Resolve a stored ``images/<name>`` URL to a file inside the upload folder."""
    safe_filename = secure_filename(os.path.basename(image_url))
    if not safe_filename:
        return None
    return upload_folder() / safe_filename


def clear_image(image_url: str | None) -> None:
    """Remove a previously uploaded image. The default avatar is shared and kept."""
    if not image_url:
        return
    if image_url == current_app.config["DEFAULT_USER_IMAGE"]:
        return
    path = image_path(image_url)
    if path is None:
        return
    try:
        path.unlink(missing_ok=True)
    except OSError:
        current_app.logger.warning("The image deletion failed: %s", path, exc_info=True)
