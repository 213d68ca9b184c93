import os

from flask import Blueprint, jsonify, send_from_directory
from werkzeug.utils import secure_filename

from backend.db import query
from backend.errors import ApiError
from backend.uploads import upload_folder

bp = Blueprint("public", __name__)


@bp.get("/health")
def health():
    """
    Readiness check. A trivial query proves the SQLite file is reachable;
    any failure is reported as 503 so deployments can tell it apart.
    """
    try:
        query("SELECT 1")
    except Exception as exc:
        return jsonify({"status": "unhealthy", "error": str(exc)}), 503
    return jsonify({"status": "healthy"})


@bp.get("/images/<path:filename>")
def serve_image(filename: str):
    """Serve uploaded images from the upload folder."""
    safe_filename = secure_filename(os.path.basename(filename))
    if not safe_filename:
        raise ApiError(400, "Invalid filename")

    folder = upload_folder()
    filepath = folder / safe_filename
    if not filepath.is_file():
        raise ApiError(404, f"Image not found: {safe_filename}")

    return send_from_directory(str(folder), safe_filename)
