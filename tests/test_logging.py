from __future__ import annotations

import json
import logging
import sys
from datetime import date
from decimal import Decimal

import pytest
from flask import Flask

from currency_api.logging import (
    JSONLogFormatter,
    init_request_logging,
    refresh_log_extra,
    setup_logging,
)


class _CaptureHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record):
        self.records.append(record)

    def messages(self, message: str) -> list[logging.LogRecord]:
        return [record for record in self.records if record.getMessage() == message]


@pytest.fixture
def root_logger():
    """Hand the root logger to a test and put its handlers and level back afterwards."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)


@pytest.fixture
def routed_app(root_logger):
    app = Flask(__name__)
    app.config.update(TESTING=True, LOG_LEVEL="INFO")

    @app.get("/rates")
    def rates():
        return {"base": "EUR"}

    @app.get("/broken")
    def broken():
        raise RuntimeError("rate table missing")

    setup_logging(app)
    init_request_logging(app)
    capture = _CaptureHandler()
    root_logger.addHandler(capture)
    return app, capture


def test_json_formatter_emits_core_fields_and_extras():
    record = logging.makeLogRecord(
        {
            "name": "currency_api.services.refresh",
            "levelno": logging.INFO,
            "levelname": "INFO",
            "msg": "Installed %s rates",
            "args": (2,),
            "request_id": "req-7",
            "rate": Decimal("1.1668"),
            "_internal": "hidden",
        }
    )

    payload = json.loads(JSONLogFormatter().format(record))

    assert payload["message"] == "Installed 2 rates"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "currency_api.services.refresh"
    assert payload["timestamp"].endswith("+00:00")
    assert payload["request_id"] == "req-7"
    assert payload["rate"] == "1.1668"
    assert "_internal" not in payload
    assert "msg" not in payload and "args" not in payload


def test_json_formatter_includes_traceback():
    try:
        raise ValueError("bad rate")
    except ValueError:
        exc_info = sys.exc_info()
    record = logging.makeLogRecord({"msg": "Refresh crashed", "exc_info": exc_info})

    payload = json.loads(JSONLogFormatter().format(record))

    assert "ValueError: bad rate" in payload["exc_info"]


@pytest.mark.parametrize(
    "json_enabled,level_name,level",
    [(True, "debug", logging.DEBUG), (False, "WARNING", logging.WARNING)],
)
def test_setup_logging_installs_single_root_handler(root_logger, json_enabled, level_name, level):
    root_logger.addHandler(logging.NullHandler())
    app = Flask(__name__)
    app.config.update(LOG_JSON_ENABLED=json_enabled, LOG_LEVEL=level_name, LOG_FORMAT="%(message)s")

    setup_logging(app)

    assert len(root_logger.handlers) == 1
    formatter = root_logger.handlers[0].formatter
    if json_enabled:
        assert isinstance(formatter, JSONLogFormatter)
    else:
        assert not isinstance(formatter, JSONLogFormatter)
        assert formatter._fmt == "%(message)s"
    assert root_logger.level == level
    assert app.logger.level == level
    assert app.logger.propagate


def test_setup_logging_runs_once_per_app(root_logger):
    app = Flask(__name__)
    setup_logging(app)
    installed = root_logger.handlers[:]

    setup_logging(app)

    assert root_logger.handlers == installed


def test_unknown_log_level_falls_back_to_info(root_logger):
    app = Flask(__name__)
    app.config["LOG_LEVEL"] = "chatty"

    setup_logging(app)

    assert root_logger.level == logging.INFO


def test_completed_request_is_logged_with_correlation_id(routed_app):
    app, capture = routed_app

    response = app.test_client().get("/rates", headers={"X-Request-ID": "corr-42"})

    (record,) = capture.messages("Request handled")
    assert response.headers["X-Request-ID"] == "corr-42"
    assert record.event == "request.completed"
    assert record.request_id == "corr-42"
    assert (record.method, record.route, record.status) == ("GET", "/rates", 200)
    assert record.duration_ms >= 0
    assert not hasattr(record, "error")


def test_request_without_header_gets_generated_id(routed_app):
    app, capture = routed_app

    response = app.test_client().get("/rates")

    (record,) = capture.messages("Request handled")
    assert len(response.headers["X-Request-ID"]) == 32
    assert record.request_id == response.headers["X-Request-ID"]


def test_unhandled_error_is_logged_as_failed_request(routed_app):
    app, capture = routed_app

    with pytest.raises(RuntimeError):
        app.test_client().get("/broken")

    (record,) = capture.messages("Request failed")
    assert record.levelno == logging.ERROR
    assert record.event == "request.failed"
    assert record.status == 500
    assert record.request_id
    assert record.error == "rate table missing"


def test_refresh_log_extra_drops_empty_fields():
    extras = refresh_log_extra(
        source="ecb",
        event="refresh.cycle",
        status="installed",
        duration_ms=12.34567,
        snapshot_date=date(2024, 1, 15),
        trigger="schedule",
    )

    assert extras == {
        "event": "refresh.cycle",
        "source": "ecb",
        "status": "installed",
        "trigger": "schedule",
        "duration_ms": 12.346,
        "snapshot_date": "2024-01-15",
    }


def test_json_formatter_includes_refresh_fields():
    formatter = JSONLogFormatter()
    record = logging.LogRecord(
        name="currency_api.services.refresh",
        level=logging.ERROR,
        pathname=__file__,
        lineno=7,
        msg="Refresh failed",
        args=(),
        exc_info=None,
    )
    for key, value in refresh_log_extra(
        source="ecb",
        event="refresh.cycle",
        status="failed",
        duration_ms=None,
        error="timeout",
    ).items():
        setattr(record, key, value)

    payload = json.loads(formatter.format(record))

    assert payload["event"] == "refresh.cycle"
    assert payload["status"] == "failed"
    assert payload["error"] == "timeout"
    assert "duration_ms" not in payload


def test_request_id_header_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"
