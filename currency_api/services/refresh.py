"""Refresh cycles: fetch, validate, install, write through to the cache."""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime
from time import perf_counter

from currency_api.logging import refresh_log_extra
from currency_api.providers import BaseRateSource, RateSourceError
from currency_api.services.cache import CacheError, SnapshotCache
from currency_api.services.rate_store import SnapshotStore
from currency_api.services.snapshot import RateSnapshot, SnapshotValidationError
from currency_api.utils.datetime import utc_now

logger = logging.getLogger(__name__)

COORDINATOR_EXT_KEY = "refresh_coordinator"


class RefreshState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    INSTALLING = "installing"
    FAILED = "failed"


class RefreshStatus(str, enum.Enum):
    INSTALLED = "installed"
    FAILED = "failed"
    COALESCED = "coalesced"


@dataclass(frozen=True)
class RefreshOutcome:
    status: RefreshStatus
    trigger: str
    started_at: datetime
    finished_at: datetime
    snapshot_date: date | None = None
    cache_written: bool = False
    error: str | None = None

    @property
    def installed(self) -> bool:
        return self.status is RefreshStatus.INSTALLED


class RefreshCoordinator:
    """Runs refresh cycles with at most one in flight.

    A trigger that arrives while a cycle is running is dropped and reported as
    ``coalesced``. Fetch and validation failures leave the installed snapshot
    untouched; the next trigger is the retry. Cache write failures are reported
    but never undo an install.
    """

    def __init__(
        self,
        source: BaseRateSource,
        store: SnapshotStore,
        cache: SnapshotCache | None = None,
    ) -> None:
        self._source = source
        self._store = store
        self._cache = cache
        self._guard = threading.Lock()
        self._state = RefreshState.IDLE
        self._last_outcome: RefreshOutcome | None = None
        self._last_started_at: datetime | None = None

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def in_progress(self) -> bool:
        return self._guard.locked()

    @property
    def last_outcome(self) -> RefreshOutcome | None:
        return self._last_outcome

    @property
    def last_started_at(self) -> datetime | None:
        return self._last_started_at

    def trigger(self, reason: str = "manual") -> RefreshOutcome:
        """Run one refresh cycle unless another one is already running."""

        started_at = utc_now()
        if not self._guard.acquire(blocking=False):
            logger.info(
                "Refresh already in progress; dropping %s trigger",
                reason,
                extra=refresh_log_extra(
                    source=self._source_name,
                    event="refresh.coalesced",
                    status=RefreshStatus.COALESCED.value,
                    duration_ms=None,
                    trigger=reason,
                ),
            )
            return RefreshOutcome(
                status=RefreshStatus.COALESCED,
                trigger=reason,
                started_at=started_at,
                finished_at=utc_now(),
            )

        try:
            self._last_started_at = started_at
            outcome = self._run_cycle(reason, started_at)
            self._last_outcome = outcome
            return outcome
        finally:
            self._state = RefreshState.IDLE
            self._guard.release()

    def warm_from_cache(self) -> bool:
        """Install the cached snapshot if nothing is installed yet.

        Returns True when a snapshot was installed.
        """

        if self._cache is None or self._store.is_ready():
            return False
        if not self._guard.acquire(blocking=False):
            return False
        try:
            try:
                snapshot = self._cache.read()
            except CacheError as exc:
                logger.warning("Cache warm start failed: %s", exc)
                return False
            if snapshot is None or self._store.is_ready():
                return False
            self._store.replace(snapshot)
            logger.info(
                "Installed cached exchange rates for %s",
                snapshot.date.isoformat(),
                extra=refresh_log_extra(
                    source=self._cache.name,
                    event="refresh.warm_start",
                    status="installed",
                    duration_ms=None,
                    snapshot_date=snapshot.date,
                ),
            )
            return True
        finally:
            self._guard.release()

    def _run_cycle(self, reason: str, started_at: datetime) -> RefreshOutcome:
        start = perf_counter()
        self._state = RefreshState.FETCHING
        logger.info("Fetching latest exchange rates from %s (%s)", self._source_name, reason)

        try:
            table = self._source.fetch_today()
            snapshot = RateSnapshot.from_raw_table(table)
        except (RateSourceError, SnapshotValidationError) as exc:
            return self._fail(reason, started_at, start, exc)
        except Exception as exc:
            return self._fail(reason, started_at, start, exc, unexpected=True)

        self._state = RefreshState.INSTALLING
        self._store.replace(snapshot)
        cache_written, cache_error = self._write_through(snapshot)

        duration = (perf_counter() - start) * 1000
        logger.info(
            "Exchange rates updated: %s rates for %s",
            len(snapshot.rates),
            snapshot.date.isoformat(),
            extra=refresh_log_extra(
                source=self._source_name,
                event="refresh.cycle",
                status=RefreshStatus.INSTALLED.value,
                duration_ms=duration,
                snapshot_date=snapshot.date,
                trigger=reason,
                error=cache_error,
            ),
        )
        return RefreshOutcome(
            status=RefreshStatus.INSTALLED,
            trigger=reason,
            started_at=started_at,
            finished_at=utc_now(),
            snapshot_date=snapshot.date,
            cache_written=cache_written,
            error=cache_error,
        )

    def _fail(
        self,
        reason: str,
        started_at: datetime,
        start: float,
        exc: Exception,
        *,
        unexpected: bool = False,
    ) -> RefreshOutcome:
        self._state = RefreshState.FAILED
        extra = refresh_log_extra(
            source=self._source_name,
            event="refresh.cycle",
            status=RefreshStatus.FAILED.value,
            duration_ms=(perf_counter() - start) * 1000,
            trigger=reason,
            error=str(exc),
        )
        if unexpected:
            logger.exception("Unexpected refresh error; keeping previous snapshot", extra=extra)
        else:
            logger.error("Refresh failed; keeping previous snapshot: %s", exc, extra=extra)
        return RefreshOutcome(
            status=RefreshStatus.FAILED,
            trigger=reason,
            started_at=started_at,
            finished_at=utc_now(),
            error=str(exc) or exc.__class__.__name__,
        )

    def _write_through(self, snapshot: RateSnapshot) -> tuple[bool, str | None]:
        if self._cache is None:
            return False, None
        try:
            self._cache.write(snapshot)
        except CacheError as exc:
            logger.warning("Cache write failed; in-process snapshot kept: %s", exc)
            return False, str(exc)
        return True, None

    @property
    def _source_name(self) -> str:
        return getattr(self._source, "name", self._source.__class__.__name__)


def init_coordinator(app) -> RefreshCoordinator:
    """Create the coordinator from the app's source, store and cache."""

    from currency_api.providers.registry import init_source
    from currency_api.services.cache import init_cache
    from currency_api.services.rate_store import init_store

    coordinator = RefreshCoordinator(
        source=init_source(app),
        store=init_store(app),
        cache=init_cache(app),
    )
    app.extensions[COORDINATOR_EXT_KEY] = coordinator
    return coordinator


def get_coordinator(app) -> RefreshCoordinator | None:
    return app.extensions.get(COORDINATOR_EXT_KEY)
