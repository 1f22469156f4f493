"""Mock rate source for testing and local development."""

from __future__ import annotations

from currency_api.utils.datetime import utc_today

from .base import BaseRateSource
from .schemas import RawRateTable

MOCK_RATES: tuple[tuple[str, str], ...] = (
    ("USD", "1.1668"),
    ("JPY", "181.28"),
    ("GBP", "0.8737"),
    ("CHF", "0.9364"),
)


class MockRateSource(BaseRateSource):
    """Deterministic source returning a fixed EUR-based table dated today."""

    name = "mock"

    def __init__(self, base: str = "EUR", rates: tuple[tuple[str, str], ...] = MOCK_RATES) -> None:
        self._base = base
        self._rates = rates

    def fetch_today(self) -> RawRateTable:
        return RawRateTable(
            date=utc_today().isoformat(),
            base=self._base,
            source=self.name,
            rates=list(self._rates),
        )
