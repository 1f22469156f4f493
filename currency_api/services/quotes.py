"""Conversion request surface used by the HTTP handlers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from currency_api.services.fx_conversion import convert, rebase
from currency_api.services.rate_store import SnapshotStore
from currency_api.services.snapshot import RateSnapshot
from currency_api.validation import normalize_currency, parse_amount


@dataclass(frozen=True)
class Quote:
    from_currency: str
    to_currency: str
    amount: Decimal
    result: Decimal
    rate: Decimal
    date: date


def get_latest(store: SnapshotStore, base: str | None = None) -> RateSnapshot:
    """Return the current snapshot, rebased onto ``base`` when one is given."""

    snapshot = store.current()
    if base is None:
        return snapshot
    return rebase(snapshot, base)


def convert_amount(
    store: SnapshotStore,
    from_currency: str,
    to_currency: str,
    amount: str | Decimal,
) -> Quote:
    """Convert an amount given as a decimal string against the current snapshot."""

    parsed = parse_amount(amount)
    snapshot = store.current()
    conversion = convert(snapshot, from_currency, to_currency, parsed)
    return Quote(
        from_currency=normalize_currency(from_currency),
        to_currency=normalize_currency(to_currency),
        amount=parsed,
        result=conversion.result,
        rate=conversion.rate,
        date=snapshot.date,
    )
