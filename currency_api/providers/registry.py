"""Registry and factory for rate sources."""

from __future__ import annotations

import os
from typing import Callable, Dict, Iterable, List

from .base import BaseRateSource, RateSourceError

SourceFactory = Callable[[], BaseRateSource]

SOURCE_EXT_KEY = "rate_source"

_SOURCE_FACTORIES: Dict[str, SourceFactory] = {}


def _default_factories() -> Iterable[tuple[str, SourceFactory]]:
    from flask import current_app

    from .ecb_provider import EcbRateSource
    from .mock import MockRateSource

    def ecb_factory() -> EcbRateSource:
        return EcbRateSource.from_config(current_app.config)

    return [
        (MockRateSource.name, MockRateSource),
        (EcbRateSource.name, ecb_factory),
    ]


def register_source(name: str, factory: SourceFactory) -> None:
    """Register a source factory under the given name."""

    if not name:
        raise ValueError("Source name cannot be empty.")
    _SOURCE_FACTORIES[name.lower()] = factory


def list_sources() -> List[str]:
    """Return the list of registered source identifiers."""

    return sorted(_SOURCE_FACTORIES.keys())


def _resolve_name(name: str | None = None) -> str:
    return (name or os.getenv("FX_RATE_SOURCE") or "mock").lower()


def get_source(name: str | None = None) -> BaseRateSource:
    """Instantiate a source using the supplied or configured name."""

    source_name = _resolve_name(name)
    try:
        factory = _SOURCE_FACTORIES[source_name]
    except KeyError as exc:
        available = ", ".join(list_sources()) or "none registered"
        raise RateSourceError(
            f"Unknown rate source '{source_name}'. Available sources: {available}"
        ) from exc
    return factory()


def init_source(app) -> BaseRateSource:
    """Attach the configured source to the Flask app."""

    source = app.extensions.get(SOURCE_EXT_KEY)
    if source is None:
        with app.app_context():
            source = get_source(app.config.get("FX_RATE_SOURCE"))
        app.extensions[SOURCE_EXT_KEY] = source
    return source


def reset_registry(default_factories: Iterable[tuple[str, SourceFactory]] | None = None) -> None:
    """Reset source registry; useful for tests."""

    _SOURCE_FACTORIES.clear()

    factories = default_factories or _default_factories()
    for name, factory in factories:
        register_source(name, factory)


reset_registry()
