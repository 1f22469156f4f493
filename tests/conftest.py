"""Shared pytest fixtures."""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterator
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Config classes read the environment at import time.
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["REFRESH_ON_STARTUP"] = "false"
os.environ["FX_RATE_SOURCE"] = "mock"
os.environ["REDIS_URL"] = ""

from currency_api import create_app  # noqa: E402
from currency_api.providers import BaseRateSource, MockRateSource  # noqa: E402
from currency_api.providers.registry import SOURCE_EXT_KEY  # noqa: E402
from currency_api.services.cache import (  # noqa: E402
    CACHE_EXT_KEY,
    InMemorySnapshotCache,
    SnapshotCache,
)
from currency_api.services.rate_store import STORE_EXT_KEY, SnapshotStore  # noqa: E402
from currency_api.services.refresh import COORDINATOR_EXT_KEY, RefreshCoordinator  # noqa: E402
from currency_api.services.snapshot import RateSnapshot, build_snapshot  # noqa: E402

SCENARIO_RATES = {"USD": "1.1668", "JPY": "181.28"}


@pytest.fixture(scope="session")
def app() -> Iterator:
    """Session-wide Flask application using the mock source and in-memory cache."""

    flask_app = create_app("development")
    flask_app.config.update(TESTING=True)
    yield flask_app


@pytest.fixture()
def client(app):
    """Provide a Flask test client."""

    with app.test_client() as client:
        yield client


@pytest.fixture()
def wire_rates(app) -> Iterator[Callable[..., RefreshCoordinator]]:
    """Swap fresh refresh components into the app for one test."""

    previous = {
        key: app.extensions.get(key)
        for key in (STORE_EXT_KEY, CACHE_EXT_KEY, SOURCE_EXT_KEY, COORDINATOR_EXT_KEY)
    }

    def _wire(
        *,
        source: BaseRateSource | None = None,
        cache: SnapshotCache | None = None,
        snapshot: RateSnapshot | None = None,
    ) -> RefreshCoordinator:
        store = SnapshotStore()
        cache = cache if cache is not None else InMemorySnapshotCache()
        source = source if source is not None else MockRateSource()
        coordinator = RefreshCoordinator(source=source, store=store, cache=cache)
        app.extensions.update(
            {
                STORE_EXT_KEY: store,
                CACHE_EXT_KEY: cache,
                SOURCE_EXT_KEY: source,
                COORDINATOR_EXT_KEY: coordinator,
            }
        )
        if snapshot is not None:
            store.replace(snapshot)
        return coordinator

    yield _wire

    app.extensions.update(previous)


@pytest.fixture()
def eur_snapshot() -> RateSnapshot:
    """EUR-based snapshot with USD 1.1668 and JPY 181.28."""

    return build_snapshot("2024-01-15", "EUR", SCENARIO_RATES.items())


@pytest.fixture()
def simple_snapshot() -> RateSnapshot:
    """Snapshot whose cross rates divide exactly."""

    return RateSnapshot(
        date=date(2024, 1, 15),
        base="EUR",
        rates={"USD": Decimal("1.25"), "GBP": Decimal("0.8"), "JPY": Decimal("160")},
    )

