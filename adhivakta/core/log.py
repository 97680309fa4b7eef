from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from flask import Flask, g, has_request_context, request

PACKAGE_LOGGER = "adhivakta"
TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(request_method)s %(request_path)s user=%(user_id)s %(message)s"


class PackageStreamHandler(logging.StreamHandler):
    """The single console handler installed on the package logger."""


class RequestContextFilter(logging.Filter):
    """Stamp each record with the request line and the acting user."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            identity = getattr(g, "identity", None)
            record.request_method = request.method
            record.request_path = request.path
            record.user_id = identity.user_id if identity is not None else "-"
        else:
            record.request_method = "-"
            record.request_path = "-"
            record.user_id = "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_method": getattr(record, "request_method", "-"),
            "request_path": getattr(record, "request_path", "-"),
            "user_id": getattr(record, "user_id", "-"),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(app: Flask) -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(str(app.config.get("LOG_LEVEL", "INFO")).upper())

    handler = next((h for h in logger.handlers if isinstance(h, PackageStreamHandler)), None)
    if handler is None:
        handler = PackageStreamHandler()
        handler.addFilter(RequestContextFilter())
        logger.addHandler(handler)

    if (app.config.get("LOG_FORMAT") or "text").lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    return logger
