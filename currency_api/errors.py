"""Application-wide error types and handlers."""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base class for API-level errors."""

    status_code: int = 400

    def __init__(
        self, message: str, *, status_code: int | None = None, payload: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}


class NotReadyError(APIError):
    """No rate snapshot has been installed yet."""

    status_code = 503

    def __init__(self, message: str = "No exchange rates available. Please try again later."):
        super().__init__(message)


class UnknownCurrencyError(APIError):
    """Requested currency is neither the snapshot base nor one of its rates."""

    status_code = 404

    def __init__(self, code: str):
        super().__init__(
            f"Currency code '{code}' not found in exchange rates",
            payload={"code": code},
        )
        self.code = code


class InvalidAmountError(APIError):
    """Amount is negative, non-finite or not a decimal number."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message, payload={"field": "amount"})


class CalculationError(APIError):
    """Arithmetic overflow or invalid divisor during rebase or conversion.

    Ingestion validation rejects the rates that could cause this, so reaching it
    means a snapshot invariant was violated.
    """

    status_code = 500


DEFAULT_STATUS_MESSAGES: dict[int, str] = {
    400: "Request could not be processed.",
    404: "Resource not found.",
    422: "Submitted data is invalid.",
    429: "Too many requests. Please try again shortly.",
    500: "Internal server error",
    502: "Upstream provider unavailable.",
    503: "Service temporarily unavailable. Please retry in a moment.",
}


def register_error_handlers(app: Flask) -> None:
    """Attach error handlers to the Flask application."""

    @app.errorhandler(CalculationError)
    def handle_calculation_error(error: CalculationError):
        logger.error("Calculation error: %s", error.message)
        return jsonify({"message": DEFAULT_STATUS_MESSAGES[500]}), error.status_code

    @app.errorhandler(APIError)
    def handle_api_error(error: APIError):
        message = error.message or DEFAULT_STATUS_MESSAGES.get(error.status_code, "Request failed.")
        payload = error.payload or {}

        response = {"message": message}
        if payload:
            response.update(payload)

        field_errors = _derive_field_errors(payload, default_message=message)
        if field_errors and "field_errors" not in response:
            response["field_errors"] = field_errors

        return jsonify(response), error.status_code


def _derive_field_errors(
    payload: dict[str, Any],
    *,
    default_message: str | None = None,
) -> dict[str, list[str]]:
    """Translate payload fields into a flat field_errors mapping."""

    if not payload:
        return {}

    if isinstance(payload.get("field_errors"), dict):
        result: dict[str, list[str]] = {}
        for field, messages in payload["field_errors"].items():
            normalized = _normalize_messages(messages)
            if normalized:
                result[str(field)] = normalized
        return result

    field = payload.get("field")
    if field and default_message:
        return {str(field): [default_message]}

    return {}


def _normalize_messages(messages: Any) -> list[str]:
    if isinstance(messages, list):
        return [item if isinstance(item, str) else str(item) for item in messages if item is not None]

    if messages is None:
        return []

    if isinstance(messages, str):
        return [messages]

    return [str(messages)]
