"""Validation helpers for currency codes and amounts."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

from currency_api.errors import InvalidAmountError

CURRENCY_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")


def normalize_currency(code: str) -> str:
    """Normalize a currency code to canonical uppercase form."""

    if code is None or not str(code).strip():
        raise ValueError("Currency code cannot be blank.")
    normalized = str(code).strip().upper()
    if not normalized.isascii():
        raise ValueError(f"Currency code must be ASCII: {code!r}")
    return normalized


def is_currency_code(value: str) -> bool:
    """Return True when ``value`` is exactly three uppercase ASCII letters."""

    return bool(CURRENCY_CODE_PATTERN.match(value))


def parse_amount(value: str | Decimal | int) -> Decimal:
    """Parse a non-negative, finite decimal amount.

    Amounts arrive as strings so that no binary float ever touches them.
    """

    if isinstance(value, Decimal):
        amount = value
    else:
        text = str(value).strip() if value is not None else ""
        if not text:
            raise InvalidAmountError("Invalid amount format: amount is required")
        try:
            amount = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidAmountError(f"Invalid amount format: {text!r}") from exc

    if not amount.is_finite():
        raise InvalidAmountError("Amount must be a finite number")
    if amount < 0:
        raise InvalidAmountError("Amount must be non-negative")
    return amount
