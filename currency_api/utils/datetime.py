"""Shared date and datetime helpers; datetimes are always UTC-aware."""

from __future__ import annotations

from datetime import UTC, date, datetime


def ensure_utc(value: datetime) -> datetime:
    """Return a timezone-aware datetime in UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    """Return the current UTC datetime."""

    return datetime.now(UTC)


def utc_today() -> date:
    return utc_now().date()


def parse_iso_date(value: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` calendar date.

    Raises:
        ValueError: If the value is blank or not an ISO calendar date.
    """

    candidate = (value or "").strip()
    if len(candidate) != 10:
        raise ValueError(f"Invalid date format: {value!r}")
    return date.fromisoformat(candidate)
