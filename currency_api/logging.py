"""Logging setup, structured JSON formatter and request correlation."""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import UTC, date, datetime
from typing import Any

from flask import Flask, g, request
from werkzeug.exceptions import HTTPException

REQUEST_ID_HEADER = "X-Request-ID"
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

LOGGING_CONFIG_FLAG = "_logging_configured"
REQUEST_LOGGING_FLAG = "_request_logging_configured"

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_STANDARD_RECORD_FIELDS = frozenset(logging.makeLogRecord({}).__dict__) | {
    "message",
    "asctime",
    "taskName",
}


class JSONLogFormatter(logging.Formatter):
    """Render a record and its ``extra`` fields as one JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_FIELDS and not key.startswith("_"):
                payload[key] = value

        return json.dumps(payload, default=str, separators=(",", ":"))


def setup_logging(app: Flask) -> None:
    """Install a single root handler configured from ``LOG_*`` settings."""

    if app.config.get(LOGGING_CONFIG_FLAG):
        return

    level = _level_from_config(app.config.get("LOG_LEVEL"))
    handler = logging.StreamHandler()
    handler.setLevel(level)
    if app.config.get("LOG_JSON_ENABLED"):
        handler.setFormatter(JSONLogFormatter())
    else:
        handler.setFormatter(logging.Formatter(app.config.get("LOG_FORMAT", DEFAULT_LOG_FORMAT)))

    root = logging.getLogger()
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # Per-request lines from werkzeug and job chatter from apscheduler stay at INFO or above.
    for name in ("werkzeug", "apscheduler"):
        logging.getLogger(name).setLevel(max(level, logging.INFO))
    app.logger.handlers = []
    app.logger.setLevel(level)
    app.logger.propagate = True

    app.config[LOGGING_CONFIG_FLAG] = True


def init_request_logging(app: Flask) -> None:
    """Log each request once with a correlation id echoed in the response."""

    if app.config.get(REQUEST_LOGGING_FLAG):
        return

    @app.before_request
    def _start_request_logging():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        g.request_start = time.perf_counter()
        g._request_logged = False

    @app.after_request
    def _log_request(response):
        request_id = getattr(g, "request_id", None)
        if request_id:
            response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        app.logger.info(
            "Request handled",
            extra=_request_fields("request.completed", response.status_code),
        )
        g._request_logged = True
        return response

    @app.teardown_request
    def _log_teardown(exc: BaseException | None):
        if exc is None or getattr(g, "_request_logged", False):
            return
        status = exc.code if isinstance(exc, HTTPException) and exc.code else 500
        app.logger.error(
            "Request failed",
            extra=_request_fields("request.failed", status, error=str(exc)),
        )
        g._request_logged = True

    app.config[REQUEST_LOGGING_FLAG] = True


def refresh_log_extra(
    *,
    source: str,
    event: str,
    status: str,
    duration_ms: float | None,
    snapshot_date: date | None = None,
    trigger: str | None = None,
    error: str | None = None,
) -> dict[str, Any]:
    """Structured fields attached to refresh-cycle log records."""

    return _without_empty(
        event=event,
        source=source,
        status=status,
        trigger=trigger,
        duration_ms=round(duration_ms, 3) if duration_ms is not None else None,
        snapshot_date=snapshot_date.isoformat() if snapshot_date else None,
        error=error,
    )


def _request_fields(event: str, status: int, *, error: str | None = None) -> dict[str, Any]:
    start = getattr(g, "request_start", None)
    duration_ms = (time.perf_counter() - start) * 1000 if start is not None else None
    return _without_empty(
        event=event,
        route=request.url_rule.rule if request.url_rule else request.path,
        method=request.method,
        path=request.path,
        status=status,
        duration_ms=round(duration_ms, 3) if duration_ms is not None else None,
        request_id=getattr(g, "request_id", None),
        client_ip=request.remote_addr,
        error=error,
    )


def _without_empty(**fields: Any) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def _level_from_config(value: Any) -> int:
    if isinstance(value, int):
        return value
    return logging.getLevelNamesMapping().get(str(value or "INFO").upper(), logging.INFO)
