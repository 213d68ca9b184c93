from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from flask import Flask, current_app, request

from backend.config import Settings
from backend.errors import ApiError
from backend.uploads import clear_image, save_image


def settings() -> Settings:
    return current_app.config["SETTINGS"]


def get_int(param: str | None, default: int, minimum: int = 1, maximum: int | None = None) -> int:
    try:
        value = int(param) if param is not None else default
    except (TypeError, ValueError):
        value = default
    value = max(minimum, value)
    if maximum is not None:
        value = min(value, maximum)
    return value


def get_page() -> int:
    return get_int(request.args.get("page"), 1)


def uploaded_image() -> Optional[str]:
    """Save the multipart ``image`` file when one was sent and return its URL."""
    file = request.files.get("image")
    if file is None or not file.filename:
        return None
    return save_image(file)


def pick_image(current: Optional[str], requested: Optional[str]) -> Optional[str]:
    """
    Image URL for an update: a new multipart upload, otherwise the body's
    ``image`` value. The body may only repeat the entity's current image;
    the shared default avatar is also accepted. Any other stored file is
    refused with 422.
    """
    image_url = uploaded_image()
    if image_url:
        return image_url
    if requested and requested not in (current, current_app.config["DEFAULT_USER_IMAGE"]):
        raise ApiError(422, "Images must be uploaded as a file")
    return requested or None


@contextmanager
def removed_on_error(image_url: Optional[str]) -> Iterator[None]:
    """Delete a freshly saved upload when the block raises."""
    try:
        yield
    except Exception:
        clear_image(image_url)
        raise


def register_blueprints(app: Flask) -> None:
    from . import answers, auth, cart, comments, feed, orders, products, public, questions, tags, tweets, users

    for module in (public, auth, users, products, cart, orders, feed, questions, answers, tags, tweets, comments):
        app.register_blueprint(module.bp)
