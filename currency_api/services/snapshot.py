"""Immutable rate snapshot and the validation that produces it."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any

from currency_api.providers.schemas import RawRateTable
from currency_api.utils.datetime import parse_iso_date
from currency_api.validation import is_currency_code


class SnapshotValidationError(ValueError):
    """Raised when a rate table violates the snapshot invariants."""


@dataclass(frozen=True)
class RateSnapshot:
    """Rates for one date, expressed as units of each currency per 1 ``base``.

    The base currency is never a key of ``rates``. Instances are built through
    ``build_snapshot`` (or ``from_raw_table``/``from_payload``) so the invariants
    hold; the mapping is exposed read-only.
    """

    date: date
    base: str
    rates: Mapping[str, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "rates", MappingProxyType(dict(self.rates)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RateSnapshot):
            return NotImplemented
        return (
            self.date == other.date
            and self.base == other.base
            and dict(self.rates) == dict(other.rates)
        )

    def __hash__(self) -> int:
        return hash((self.date, self.base, frozenset(self.rates.items())))

    def has_currency(self, code: str) -> bool:
        return code == self.base or code in self.rates

    def to_payload(self) -> dict[str, Any]:
        """Serialize with rates as exact decimal strings."""

        return {
            "date": self.date.isoformat(),
            "base": self.base,
            "rates": {code: str(rate) for code, rate in sorted(self.rates.items())},
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> RateSnapshot:
        try:
            raw_date = payload["date"]
            base = payload["base"]
            rates = payload["rates"]
        except (KeyError, TypeError) as exc:
            raise SnapshotValidationError(f"Snapshot payload missing field: {exc}") from exc
        if not isinstance(rates, Mapping):
            raise SnapshotValidationError("Snapshot payload 'rates' must be a mapping")
        return build_snapshot(raw_date, base, rates.items())

    @classmethod
    def from_raw_table(cls, table: RawRateTable) -> RateSnapshot:
        return build_snapshot(table.date, table.base, table.rates)


def build_snapshot(
    raw_date: str | date,
    base: str,
    entries: Iterable[tuple[str, Any]],
) -> RateSnapshot:
    """Validate raw values and assemble a ``RateSnapshot``.

    Raises:
        SnapshotValidationError: On a malformed date or code, a non-positive or
            non-finite rate, a duplicate code, or an empty table.
    """

    snapshot_date = _parse_date(raw_date)
    base_code = _parse_code(base, what="base currency")

    rates: dict[str, Decimal] = {}
    for raw_code, raw_rate in entries:
        code = _parse_code(raw_code, what="currency")
        rate = _parse_rate(code, raw_rate)
        if code in rates:
            raise SnapshotValidationError(f"Duplicate rate for {code}")
        if code == base_code:
            # Some feeds echo the base at 1; anything else contradicts the table.
            if rate != 1:
                raise SnapshotValidationError(
                    f"Base currency {base_code} listed with rate {rate}, expected 1"
                )
            continue
        rates[code] = rate

    if not rates:
        raise SnapshotValidationError("Rate table is empty")

    return RateSnapshot(date=snapshot_date, base=base_code, rates=rates)


def _parse_date(value: str | date) -> date:
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError as exc:
        raise SnapshotValidationError(f"Invalid date format: {value!r}") from exc


def _parse_code(value: Any, *, what: str) -> str:
    normalized = str(value or "").strip().upper()
    if not is_currency_code(normalized):
        raise SnapshotValidationError(f"Invalid {what} code {value!r}")
    return normalized


def _parse_rate(code: str, value: Any) -> Decimal:
    if isinstance(value, float):
        raise SnapshotValidationError(f"Rate for {code} must be a decimal string, got float")
    try:
        rate = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise SnapshotValidationError(f"Failed to parse rate for {code}: {value!r}") from exc
    if not rate.is_finite() or rate <= 0:
        raise SnapshotValidationError(f"Rate for {code} must be positive and finite, got {value!r}")
    return rate
