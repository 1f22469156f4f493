"""Dataclasses describing raw rate tables handed over by rate sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

RateEntry = Tuple[str, str]


@dataclass(frozen=True)
class RawRateTable:
    """Unvalidated rate table as published by a source.

    ``rates`` keeps the published order and may contain duplicates or malformed
    entries; turning it into a snapshot is where validation happens. Rate values
    are kept as the source's decimal strings.
    """

    date: str
    base: str
    source: str
    rates: List[RateEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.source or not self.source.strip():
            raise ValueError("source must be provided for RawRateTable")
        object.__setattr__(self, "rates", [(str(code), str(rate)) for code, rate in self.rates])
