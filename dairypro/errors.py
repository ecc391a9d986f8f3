"""
Error taxonomy, JSON error handlers and logging setup.

Services raise DairyError subclasses before touching the database; routes wrap
database work in @server_errors so driver failures come back as a generic 500.
"""
import logging
import sys
from functools import wraps
from typing import List, Optional

from flask import current_app, jsonify, request
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError
from werkzeug.exceptions import HTTPException

from dairypro.app_config import is_production


class DairyError(Exception):
    status_code = 500

    def __init__(self, message: str, details=None, **extra):
        super().__init__(message)
        self.message = message
        self.details = details
        self.extra = extra

    def to_dict(self):
        out = {"error": self.message}
        if self.details is not None:
            out["details"] = self.details
        out.update(self.extra)
        return out


class ValidationError(DairyError):
    status_code = 400

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError, message: Optional[str] = None):
        """
        Collapse a pydantic error into one message per failing field.
        With no `message`, the first field error becomes the headline.
        """
        messages = pydantic_messages(exc)
        if message is None:
            return cls(messages[0] if messages else "Invalid request body")
        return cls(message, details=messages)


class NotFoundError(DairyError):
    status_code = 404


class ConflictError(DairyError):
    status_code = 409


def pydantic_messages(exc: PydanticValidationError) -> List[str]:
    out = []
    for err in exc.errors():
        msg = err.get("msg", "")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        elif err.get("loc"):
            msg = f"Invalid {err['loc'][0]}: {msg}"
        out.append(msg)
    return out


def server_errors(message: str):
    """
    Route decorator: database failures are logged with request context and
    answered with a generic 500. The driver message is only exposed outside
    production.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except PyMongoError as e:
                current_app.logger.exception("%s %s failed: %s", request.method, request.path, e)
                return _server_error_response(message, e)
        return wrapper
    return decorator


def _server_error_response(message: str, exc: Exception):
    body = {"error": message}
    if not is_production(current_app):
        body["details"] = str(exc)
    return jsonify(body), 500


def configure_logging(app):
    """
    Outside debug/testing, send app.logger to stderr with a timestamped
    format at LOG_LEVEL.
    """
    level = getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO)

    if not app.debug and not app.testing:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(
            "[%(asctime)s] %(levelname)s in %(module)s: %(message)s"
        ))
        app.logger.addHandler(handler)

    app.logger.setLevel(level)


def register_error_handlers(app):

    @app.errorhandler(DairyError)
    def handle_dairy_error(error: DairyError):
        if error.status_code >= 500:
            app.logger.error("%s %s: %s", request.method, request.path, error.message)
        else:
            app.logger.info("%s %s -> %s: %s", request.method, request.path, error.status_code, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"error": error.description or error.name}), error.code

    @app.errorhandler(PyMongoError)
    def handle_db_error(error: PyMongoError):
        app.logger.exception("%s %s database error: %s", request.method, request.path, error)
        return _server_error_response("Database error", error)

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        app.logger.exception("%s %s unhandled error: %s", request.method, request.path, error)
        return _server_error_response("Internal server error", error)
