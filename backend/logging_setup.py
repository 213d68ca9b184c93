import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import Flask, request

from .config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(app: Flask, settings: Settings) -> None:
    """Attach console (and optional rotating file) handlers to the app logger."""
    log_level = getattr(logging, str(settings.log_level).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    app.logger.setLevel(log_level)
    app.logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    app.logger.addHandler(console_handler)

    if settings.log_file:
        log_path = Path(settings.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=10485760,
            backupCount=5,
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        app.logger.addHandler(file_handler)

    @app.before_request
    def _log_request() -> None:
        app.logger.debug("%s %s", request.method, request.path)
