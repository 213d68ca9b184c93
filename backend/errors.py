from __future__ import annotations

from functools import wraps
from typing import Any, Callable

from flask import Flask, current_app, g, jsonify
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    """An error that maps directly onto an HTTP response."""

    def __init__(self, status_code: int, message: str, details: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        if self.details:
            body["details"] = self.details
        return body


def handles_errors(fallback_message: str) -> Callable:
    """
    Turn unexpected exceptions raised by a view into a 500 ``ApiError``.

    Known errors (``ApiError``, HTTP and token errors) pass through untouched so
    their own handlers can answer. Anything else rolls back the request's
    connection, is logged with its traceback, and surfaces as
    ``fallback_message``.
    """

    def decorator(view: Callable) -> Callable:
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except (ApiError, HTTPException, JWTExtendedException, PyJWTError):
                raise
            except Exception as exc:
                conn = g.get("sqlite_conn")
                if conn is not None:
                    conn.rollback()
                current_app.logger.exception(fallback_message)
                raise ApiError(500, fallback_message) from exc

        return wrapper

    return decorator


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def _api_error(exc: ApiError):
        if exc.status_code >= 500:
            app.logger.error("%s (%s)", exc.message, exc.__cause__)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return jsonify({"message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        app.logger.exception("Unhandled error")
        return jsonify({"message": "Internal server error"}), 500
