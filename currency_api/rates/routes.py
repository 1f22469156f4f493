"""Routes for the latest rate table, conversions and manual refresh."""

from __future__ import annotations

from datetime import timedelta

from flask import current_app, jsonify
from flask.views import MethodView

from currency_api.schemas import (
    ConvertQuerySchema,
    ConvertResultSchema,
    ErrorMessageSchema,
    LatestRatesQuerySchema,
    LatestRatesSchema,
    RefreshResultSchema,
    RefreshThrottleSchema,
)
from currency_api.services.quotes import convert_amount, get_latest
from currency_api.services.rate_store import STORE_EXT_KEY, SnapshotStore
from currency_api.services.refresh import RefreshCoordinator, RefreshStatus, get_coordinator
from currency_api.utils.datetime import utc_now

from . import blp

DEFAULT_THROTTLE_SECONDS = 60

REFRESH_STATUS_CODES = {
    RefreshStatus.INSTALLED: 202,
    RefreshStatus.COALESCED: 409,
    RefreshStatus.FAILED: 503,
}

REFRESH_MESSAGES = {
    RefreshStatus.INSTALLED: "Exchange rates refreshed.",
    RefreshStatus.COALESCED: "A refresh is already in progress.",
    RefreshStatus.FAILED: "Refresh failed; previous rates are still served.",
}


def _store() -> SnapshotStore:
    return current_app.extensions[STORE_EXT_KEY]


@blp.route("/api/latest")
class LatestRates(MethodView):
    @blp.arguments(LatestRatesQuerySchema, location="query")
    @blp.response(200, LatestRatesSchema())
    @blp.alt_response(404, schema=ErrorMessageSchema)
    @blp.alt_response(503, schema=ErrorMessageSchema)
    def get(self, args):
        """Latest rates, optionally rebased onto another currency."""

        return get_latest(_store(), args.get("base"))


@blp.route("/api/convert")
class Convert(MethodView):
    @blp.arguments(ConvertQuerySchema, location="query")
    @blp.response(200, ConvertResultSchema())
    @blp.alt_response(400, schema=ErrorMessageSchema)
    @blp.alt_response(404, schema=ErrorMessageSchema)
    @blp.alt_response(503, schema=ErrorMessageSchema)
    def get(self, args):
        """Convert an amount between two currencies."""

        return convert_amount(
            _store(),
            args["from_currency"],
            args["to_currency"],
            args["amount"],
        )


@blp.route("/rates/refresh")
class RefreshRates(MethodView):
    @blp.response(202, RefreshResultSchema())
    @blp.alt_response(409, schema=RefreshResultSchema)
    @blp.alt_response(429, schema=RefreshThrottleSchema)
    @blp.alt_response(503, schema=RefreshResultSchema)
    def post(self):
        """Run one refresh cycle now, unless throttled or already running."""

        coordinator: RefreshCoordinator | None = get_coordinator(current_app)
        if coordinator is None:
            response = jsonify({"message": "Refresh coordinator unavailable."})
            response.status_code = 503
            return response

        throttled = _throttle_response(coordinator)
        if throttled is not None:
            return throttled

        outcome = coordinator.trigger("manual")
        payload = {
            "message": REFRESH_MESSAGES[outcome.status],
            "status": outcome.status.value,
            "trigger": outcome.trigger,
            "snapshot_date": outcome.snapshot_date,
            "cache_written": outcome.cache_written,
            "error": outcome.error,
        }
        return payload, REFRESH_STATUS_CODES[outcome.status]


def _throttle_response(coordinator: RefreshCoordinator):
    throttle_seconds = int(
        current_app.config.get("REFRESH_THROTTLE_SECONDS", DEFAULT_THROTTLE_SECONDS)
    )
    last_started = coordinator.last_started_at
    if throttle_seconds <= 0 or last_started is None:
        return None

    now = utc_now()
    next_allowed_at = last_started + timedelta(seconds=throttle_seconds)
    if next_allowed_at <= now:
        return None

    retry_after = max(int((next_allowed_at - now).total_seconds()), 1)
    response = jsonify({"message": "Refresh throttled. Try again later.", "retry_after": retry_after})
    response.status_code = 429
    response.headers["Retry-After"] = str(retry_after)
    return response
