"""In-process holder of the current rate snapshot."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime

from currency_api.errors import NotReadyError
from currency_api.services.snapshot import RateSnapshot
from currency_api.utils.datetime import ensure_utc, utc_now

STORE_EXT_KEY = "rate_store"


@dataclass(frozen=True)
class _StoreState:
    snapshot: RateSnapshot | None = None
    last_updated: datetime | None = None


class SnapshotStore:
    """Holds the authoritative snapshot and swaps it atomically.

    The snapshot and its install time live in one immutable state record and
    ``replace`` rebinds that record in a single assignment, so a reader sees the
    complete old state or the complete new one. Readers take no lock; the
    writer lock only covers the assignment itself.
    """

    def __init__(self, clock=utc_now) -> None:
        self._clock = clock
        self._state = _StoreState()
        self._write_lock = threading.Lock()

    def current(self) -> RateSnapshot:
        snapshot = self._state.snapshot
        if snapshot is None:
            raise NotReadyError()
        return snapshot

    def is_ready(self) -> bool:
        return self._state.snapshot is not None

    def last_updated(self) -> datetime | None:
        return self._state.last_updated

    def read_state(self) -> tuple[RateSnapshot | None, datetime | None]:
        """Return the snapshot and its install time from one consistent read."""

        state = self._state
        return state.snapshot, state.last_updated

    def replace(self, snapshot: RateSnapshot) -> None:
        if not isinstance(snapshot, RateSnapshot):
            raise TypeError("replace() expects a RateSnapshot")
        new_state = _StoreState(snapshot=snapshot, last_updated=ensure_utc(self._clock()))
        with self._write_lock:
            self._state = new_state


def init_store(app) -> SnapshotStore:
    """Create the process-wide store and attach it to the Flask app."""

    store = app.extensions.get(STORE_EXT_KEY)
    if store is None:
        store = SnapshotStore()
        app.extensions[STORE_EXT_KEY] = store
    return store
