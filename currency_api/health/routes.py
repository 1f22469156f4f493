"""Route handlers for health checks."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from currency_api.schemas import HealthSchema
from currency_api.services.cache import CACHE_EXT_KEY
from currency_api.services.health import HealthReporter
from currency_api.services.rate_store import STORE_EXT_KEY

from . import blp


@blp.route("")
class HealthStatus(MethodView):
    @blp.response(200, HealthSchema())
    def get(self):
        """Readiness, cache reachability and the date of the served rates."""

        reporter = HealthReporter(
            store=current_app.extensions[STORE_EXT_KEY],
            cache=current_app.extensions.get(CACHE_EXT_KEY),
        )
        report = reporter.report()
        return {
            "status": "ok",
            "ready": report.ready,
            "redis": "healthy" if report.cache_reachable else "unhealthy",
            "last_update": report.last_update_date,
            "last_refreshed_at": report.last_refreshed_at,
        }
