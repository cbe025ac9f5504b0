"""Shared Flask extensions used by the stores and application services."""

import logging

from flask import current_app, has_app_context
from flask_sqlalchemy import SQLAlchemy

LOGGER_NAME = "trail_discovery"

# SQLAlchemy instance initialized in app.py so stores can import `db`.
db = SQLAlchemy()


def get_logger() -> logging.Logger:
    """Flask's app logger inside an app context, the package logger otherwise."""
    if has_app_context():
        return current_app.logger
    return logging.getLogger(LOGGER_NAME)
