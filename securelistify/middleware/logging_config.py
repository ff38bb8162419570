"""
Structured logging and request logging.

- Development: human-readable colored lines on stderr
- Production: one JSON object per line (log aggregator compatible)
- LOG_LEVEL env variable overrides the level
- Every request gets an X-Request-ID and a single access-log record
"""

import json
import logging
import os
import sys
import time
import uuid
from datetime import datetime, timezone

from flask import g, request

logger = logging.getLogger(__name__)

# Record attributes copied into JSON output when a caller passes them via ``extra``
_CONTEXT_FIELDS = (
    "method",
    "path",
    "status",
    "duration_ms",
    "request_id",
    "user_id",
    "checklist_id",
    "template_id",
    "export_format",
)

_QUIET_PATHS = frozenset({"/api/v1/health/live", "/api/v1/health/ready"})


class JSONFormatter(logging.Formatter):
    """Single-line JSON records for production."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Colored formatter for development terminals."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        stamp = datetime.now().strftime("%H:%M:%S")
        line = f"{color}{stamp} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}"
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            line += f" [{duration:.0f}ms]"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install a single stderr handler on the root logger.

    Testing and development use ReadableFormatter; anything else gets JSON.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if is_prod else ReadableFormatter())
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy in ("werkzeug", "sqlalchemy.engine", "reportlab"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    app.logger.setLevel(level)
    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "JSON" if is_prod else "readable")


def init_request_logging(app):
    """Tag each request with an id and log method, path, status and duration."""

    @app.before_request
    def _start_request():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _log_request(response):
        start = getattr(g, "request_start", None)
        if start is None:
            return response
        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = g.request_id

        if request.path in _QUIET_PATHS:
            return response

        user = getattr(g, "current_user", None)
        extra = {
            "method": request.method,
            "path": request.path,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 1),
            "request_id": g.request_id,
            "user_id": user.id if user is not None else None,
        }
        if response.status_code >= 500:
            logger.error("%s %s -> %d", request.method, request.path,
                         response.status_code, extra=extra)
        else:
            logger.info("%s %s -> %d", request.method, request.path,
                        response.status_code, extra=extra)
        return response
