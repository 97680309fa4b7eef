from __future__ import annotations

import logging

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    code = "internal_error"
    default_message = "Unexpected error"

    def __init__(self, message: str | None = None, fields: dict[str, str] | None = None):
        self.message = message or self.default_message
        self.fields = dict(fields or {})
        super().__init__(self.message)

    def to_dict(self) -> dict[str, object]:
        body: dict[str, object] = {"code": self.code, "message": self.message}
        if self.fields:
            body["fields"] = self.fields
        return body


class ValidationError(AppError, ValueError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid data"

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        return cls(message, fields={field: message})


class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Authentication required"


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "You are not allowed to access this resource"


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class Conflict(AppError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists"


class StorageError(AppError):
    status_code = 502
    code = "storage_error"
    default_message = "File storage is unavailable"


class FieldErrors:
    """Collects field-level messages so a payload reports every problem at once."""

    def __init__(self) -> None:
        self.errors: dict[str, str] = {}

    def __bool__(self) -> bool:
        return bool(self.errors)

    def add(self, field: str, message: str) -> None:
        self.errors.setdefault(field, message)

    def merge(self, exc: ValidationError, field: str | None = None) -> None:
        if exc.fields:
            for key, message in exc.fields.items():
                self.add(key, message)
        else:
            self.add(field or "payload", exc.message)

    def raise_if_any(self) -> None:
        if self.errors:
            raise ValidationError("Validation failed", fields=self.errors)


def _error_response(status_code: int, body: dict[str, object]):
    return jsonify({"success": False, "error": body}), status_code


def register_error_handlers(app: Flask) -> None:
    from adhivakta.core.extensions import db

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        db.session.rollback()
        if error.status_code >= 500:
            logger.error("%s: %s", error.code, error.message)
        return _error_response(error.status_code, error.to_dict())

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        code = (error.name or "error").lower().replace(" ", "_")
        return _error_response(error.code or 500, {"code": code, "message": error.description})

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(error: SQLAlchemyError):
        db.session.rollback()
        logger.exception("Database error while handling request")
        return _error_response(500, {"code": "internal_error", "message": "Unexpected error"})

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        db.session.rollback()
        logger.exception("Unhandled error while handling request")
        return _error_response(500, {"code": "internal_error", "message": "Unexpected error"})
