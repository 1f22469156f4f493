"""Service health derived from the snapshot store and cache reachability."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from currency_api.services.cache import SnapshotCache
from currency_api.services.rate_store import SnapshotStore


@dataclass(frozen=True)
class HealthReport:
    ready: bool
    cache_reachable: bool
    last_update_date: date | None
    last_refreshed_at: datetime | None = None


class HealthReporter:
    """Reports readiness and data age; deciding what counts as stale is left to monitoring."""

    def __init__(self, store: SnapshotStore, cache: SnapshotCache | None = None) -> None:
        self._store = store
        self._cache = cache

    def report(self) -> HealthReport:
        snapshot, refreshed_at = self._store.read_state()
        return HealthReport(
            ready=snapshot is not None,
            cache_reachable=self._cache.ping() if self._cache is not None else False,
            last_update_date=snapshot.date if snapshot is not None else None,
            last_refreshed_at=refreshed_at,
        )
