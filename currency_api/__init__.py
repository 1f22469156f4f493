"""Application factory for the Currency Converter API."""

from __future__ import annotations

from flask import Flask
from flask_smorest import Api

from config import get_config

from .cli import register_cli
from .cors import init_cors
from .logging import init_request_logging, setup_logging


def create_app(config_name: str | None = None) -> Flask:
    """Application factory adhering to the Flask app factory pattern."""

    app = Flask(__name__)
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    setup_logging(app)
    init_request_logging(app)
    init_cors(app)

    _configure_api(app)
    api = _register_extensions(app)
    _register_blueprints(app, api)
    _register_error_handlers(app)
    _register_index(app)

    register_cli(app)
    _start_refresh(app)
    return app


def _configure_api(app: Flask) -> None:
    app.config.setdefault("API_TITLE", "Currency Converter API")
    app.config.setdefault("API_VERSION", app.config.get("APP_VERSION", "v1"))
    app.config.setdefault("OPENAPI_VERSION", "3.0.3")
    app.config.setdefault("OPENAPI_URL_PREFIX", "/docs")
    app.config.setdefault("OPENAPI_SWAGGER_UI_PATH", "/")
    app.config.setdefault(
        "OPENAPI_SWAGGER_UI_URL",
        "https://cdn.jsdelivr.net/npm/swagger-ui-dist/",
    )


def _register_extensions(app: Flask) -> Api:
    """Wire the snapshot store, cache, rate source and refresh coordinator."""

    from .services import init_coordinator

    init_coordinator(app)

    api = Api(app)
    app.extensions["smorest_api"] = api
    return api


def _register_blueprints(app: Flask, api: Api) -> None:
    """Register Flask blueprints."""

    from .health import blp as health_blp
    from .rates import blp as rates_blp

    api.register_blueprint(health_blp, url_prefix="/health")
    api.register_blueprint(rates_blp)


def _register_error_handlers(app: Flask) -> None:
    """Register global error handlers."""

    from .errors import register_error_handlers

    register_error_handlers(app)


def _register_index(app: Flask) -> None:
    @app.get("/")
    def index():
        return {
            "status": "success",
            "service": "Currency Converter API",
            "version": app.config.get("APP_VERSION", "0.2.0"),
            "endpoints": {
                "health": "GET /health",
                "latest_rates": "GET /api/latest?base=<CURRENCY>",
                "convert": "GET /api/convert?from=<FROM>&to=<TO>&amount=<AMOUNT>",
                "refresh": "POST /rates/refresh",
                "docs": "GET /docs/",
            },
        }


def _start_refresh(app: Flask) -> None:
    """Run the startup refresh and start the daily schedule."""

    from .services import init_scheduler

    init_scheduler(app)
