"""Test fixture helpers and stub rate sources."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterable
from pathlib import Path

from currency_api.providers import BaseRateSource, RateSourceError, RawRateTable

_FIXTURE_ROOT = Path(__file__).parent

TableOrError = RawRateTable | Exception


def load_text(name: str) -> str:
    """Load a text fixture by filename."""

    return (_FIXTURE_ROOT / name).read_text(encoding="utf-8")


def make_table(
    date: str = "2024-01-15",
    rates: Iterable[tuple[str, str]] = (("USD", "1.1668"), ("JPY", "181.28")),
    base: str = "EUR",
) -> RawRateTable:
    return RawRateTable(date=date, base=base, source="stub", rates=list(rates))


class SequencedRateSource(BaseRateSource):
    """Source that yields predefined tables or errors in order."""

    name = "stub"

    def __init__(self, items: Iterable[TableOrError] = ()) -> None:
        self._items: deque[TableOrError] = deque(items)
        self.calls = 0

    def fetch_today(self) -> RawRateTable:
        self.calls += 1
        if not self._items:
            raise RateSourceError("stub exhausted: no table available")
        item = self._items.popleft()
        if isinstance(item, Exception):
            raise item
        return item


class BlockingRateSource(BaseRateSource):
    """Source that parks inside ``fetch_today`` until released."""

    name = "blocking"

    def __init__(self, table: RawRateTable | None = None) -> None:
        self._table = table or make_table()
        self.entered = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def fetch_today(self) -> RawRateTable:
        self.calls += 1
        self.entered.set()
        if not self.release.wait(timeout=5):
            raise RateSourceError("blocking source was never released")
        return self._table
