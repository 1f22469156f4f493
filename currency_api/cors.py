"""CORS handling for browser clients of the rates API."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Response, make_response, request

CORS_CONFIG_FLAG = "_cors_configured"


def init_cors(app) -> None:
    """Answer preflights and tag responses for the configured origins.

    ``CORS_ALLOWED_ORIGINS`` may contain ``*`` to allow any origin.
    """

    if app.config.get(CORS_CONFIG_FLAG):
        return

    allowed_origins = _normalize_entries(app.config.get("CORS_ALLOWED_ORIGINS", ()))
    if not allowed_origins:
        return

    allowed_headers = _normalize_entries(app.config.get("CORS_ALLOWED_HEADERS", ("Content-Type",)))
    allowed_methods = _normalize_entries(
        app.config.get("CORS_ALLOWED_METHODS", ("GET", "POST", "OPTIONS"))
    )
    max_age = int(app.config.get("CORS_MAX_AGE", 600))
    allow_any = "*" in allowed_origins

    def origin_allowed(origin: str | None) -> bool:
        if not origin:
            return False
        return allow_any or origin in allowed_origins

    @app.before_request
    def handle_preflight():
        if request.method != "OPTIONS":
            return None

        origin = request.headers.get("Origin")
        if origin is None:
            return None
        if not origin_allowed(origin):
            return make_response("", 403)

        response = make_response("", 204)
        _apply_origin_headers(response, origin, allow_any)
        response.headers["Access-Control-Allow-Methods"] = ", ".join(allowed_methods)
        response.headers["Access-Control-Allow-Headers"] = request.headers.get(
            "Access-Control-Request-Headers",
            ", ".join(allowed_headers),
        )
        response.headers["Access-Control-Max-Age"] = str(max_age)
        return response

    @app.after_request
    def apply_cors(response: Response):
        origin = request.headers.get("Origin")
        if origin_allowed(origin):
            _apply_origin_headers(response, origin, allow_any)
        return response

    app.config[CORS_CONFIG_FLAG] = True


def _normalize_entries(raw: str | Iterable[str]) -> tuple[str, ...]:
    candidates = raw.split(",") if isinstance(raw, str) else list(raw)
    return tuple(item for item in ((value or "").strip() for value in candidates) if item)


def _apply_origin_headers(response: Response, origin: str, allow_any: bool) -> None:
    response.headers["Access-Control-Allow-Origin"] = "*" if allow_any else origin
    vary = response.headers.get("Vary")
    items = [item.strip() for item in vary.split(",") if item.strip()] if vary else []
    if "Origin" not in items:
        items.append("Origin")
    response.headers["Vary"] = ", ".join(items)
