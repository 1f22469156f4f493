"""Abstract interface for daily rate sources."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .schemas import RawRateTable


class RateSourceError(Exception):
    """Raised when a source cannot deliver today's rate table."""


class BaseRateSource(ABC):
    """Defines the interface all rate sources must implement."""

    name: str

    @abstractmethod
    def fetch_today(self) -> RawRateTable:
        """Retrieve the most recently published rate table."""
