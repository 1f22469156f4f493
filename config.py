"""Application configuration classes."""

from __future__ import annotations

import os

SUPPORTED_RATE_SOURCES = {"ecb", "ecb_daily", "mock"}
SOURCE_ALIASES = {"ecb_daily": "ecb"}


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


class BaseConfig:
    """Base configuration shared across environments."""

    SCHEDULER_ENABLED = _get_env("SCHEDULER_ENABLED", "true").lower() == "true"
    # ECB publishes reference rates around 16:00 CET; refresh once a day after that.
    RATES_REFRESH_CRON = _get_env("RATES_REFRESH_CRON", "0 15 * * *")
    REFRESH_ON_STARTUP = _get_env("REFRESH_ON_STARTUP", "true").lower() == "true"

    APP_NAME = "currency-converter-api"
    APP_VERSION = _get_env("APP_VERSION", "0.2.0")
    SECRET_KEY = _get_env("SECRET_KEY", "change-me")
    SCHEDULER_TIMEZONE = _get_env("SCHEDULER_TIMEZONE", "UTC")
    REQUEST_TIMEOUT_SECONDS = int(_get_env("REQUEST_TIMEOUT_SECONDS", "30"))
    FX_RATE_SOURCE = _get_env("FX_RATE_SOURCE", "ecb")
    ECB_URL = _get_env(
        "ECB_URL", "https://www.ecb.europa.eu/stats/eurofxref/eurofxref-daily.xml"
    )
    RATES_SOURCE_MAX_RETRIES = int(_get_env("RATES_SOURCE_MAX_RETRIES", "3"))
    RATES_SOURCE_BACKOFF_SECONDS = float(_get_env("RATES_SOURCE_BACKOFF_SECONDS", "0.5"))
    REDIS_URL = _get_env("REDIS_URL", "redis://localhost:6379")
    REDIS_TIMEOUT_SECONDS = float(_get_env("REDIS_TIMEOUT_SECONDS", "5"))
    CACHE_WARM_START = _get_env("CACHE_WARM_START", "true").lower() == "true"
    REFRESH_THROTTLE_SECONDS = int(_get_env("REFRESH_THROTTLE_SECONDS", "60"))
    LOG_LEVEL = _get_env("LOG_LEVEL", "INFO")
    LOG_JSON_ENABLED = _get_env("LOG_JSON_ENABLED", "false").lower() == "true"
    LOG_FORMAT = _get_env("LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s")
    CORS_ALLOWED_ORIGINS = _get_env("CORS_ALLOWED_ORIGINS", "*")
    CORS_ALLOWED_HEADERS = _get_env("CORS_ALLOWED_HEADERS", "Content-Type,Authorization")
    CORS_ALLOWED_METHODS = _get_env("CORS_ALLOWED_METHODS", "GET,POST,OPTIONS")
    CORS_MAX_AGE = int(_get_env("CORS_MAX_AGE", "600"))


class DevelopmentConfig(BaseConfig):
    """Configuration for local development."""

    DEBUG = True
    TESTING = False


class ProductionConfig(BaseConfig):
    """Configuration for production deployments."""

    DEBUG = False
    TESTING = False


CONFIG_BY_ENV = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
}


def get_config(config_name: str | None = None) -> type[BaseConfig]:
    """Return the config class for the requested environment.

    Args:
        config_name: Optional explicit config identifier. If omitted, the
            APP_ENV environment variable is consulted.

    Raises:
        KeyError: If the requested configuration is not defined.
        ValueError: If the configured rate source is not supported.
    """

    env_candidate = config_name if config_name is not None else os.getenv("APP_ENV", "development")
    env_name = (env_candidate or "development").lower()
    try:
        config_cls = CONFIG_BY_ENV[env_name]
    except KeyError as exc:
        raise KeyError(f"Unknown APP_ENV '{env_name}'") from exc

    _validate_source(config_cls)
    return config_cls


def _validate_source(config_cls: type[BaseConfig]) -> None:
    normalized = _normalize_source(config_cls.FX_RATE_SOURCE)
    if normalized not in SUPPORTED_RATE_SOURCES:
        raise ValueError(
            f"Unsupported FX_RATE_SOURCE '{config_cls.FX_RATE_SOURCE}'. "
            f"Allowed values: {sorted(SUPPORTED_RATE_SOURCES)}"
        )
    config_cls.FX_RATE_SOURCE = normalized


def _normalize_source(value: str | None) -> str:
    if not value:
        return ""
    normalized = value.strip().lower()
    return SOURCE_ALIASES.get(normalized, normalized)
