"""Exact decimal conversion and rebasing against a rate snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import (
    ROUND_HALF_EVEN,
    Context,
    Decimal,
    DecimalException,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)

from currency_api.errors import CalculationError, InvalidAmountError, UnknownCurrencyError
from currency_api.services.snapshot import RateSnapshot
from currency_api.validation import normalize_currency

ROUNDING_PRECISION = 28

ONE = Decimal(1)


def get_decimal_context() -> Context:
    """Return the shared Decimal context used across FX conversions."""

    return Context(
        prec=ROUNDING_PRECISION,
        rounding=ROUND_HALF_EVEN,
        traps=[Overflow, InvalidOperation, DivisionByZero],
    )


@dataclass(frozen=True)
class ConversionResult:
    result: Decimal
    rate: Decimal


def rebase(snapshot: RateSnapshot, new_base: str) -> RateSnapshot:
    """Re-express ``snapshot`` so that ``new_base`` is the 1-unit reference.

    The new base is left out of the resulting table and the old base is added
    with ``1 / r``, where ``r`` is the old-base to new-base rate. Rebasing onto
    the current base returns ``snapshot`` itself.

    Raises:
        UnknownCurrencyError: If ``new_base`` is not part of the snapshot.
        CalculationError: On a zero or non-finite divisor, or overflow.
    """

    target = _normalize(new_base)
    if target == snapshot.base:
        return snapshot

    try:
        base_rate = snapshot.rates[target]
    except KeyError as exc:
        raise UnknownCurrencyError(target) from exc

    _check_divisor(base_rate, target)
    with localcontext(get_decimal_context()):
        try:
            rebased = {snapshot.base: ONE / base_rate}
            for code, value in snapshot.rates.items():
                if code == target:
                    continue
                rebased[code] = value / base_rate
        except DecimalException as exc:
            raise CalculationError(f"Division error while rebasing to {target}: {exc!r}") from exc

    return RateSnapshot(date=snapshot.date, base=target, rates=rebased)


def convert(
    snapshot: RateSnapshot,
    from_currency: str,
    to_currency: str,
    amount: Decimal,
) -> ConversionResult:
    """Convert ``amount`` of ``from_currency`` into ``to_currency``.

    The cross rate is derived directly from the two base-relative rates
    (``to_rate / from_rate``); no rebased table is built.
    """

    source = _normalize(from_currency)
    target = _normalize(to_currency)

    if not isinstance(amount, Decimal):
        raise InvalidAmountError("Amount must be a decimal value")
    if not amount.is_finite():
        raise InvalidAmountError("Amount must be a finite number")
    if amount < 0:
        raise InvalidAmountError("Amount must be non-negative")

    if source == target:
        return ConversionResult(result=amount, rate=ONE)

    from_rate = _rate_against_base(snapshot, source)
    to_rate = _rate_against_base(snapshot, target)

    _check_divisor(from_rate, source)
    with localcontext(get_decimal_context()):
        try:
            rate = to_rate / from_rate
        except DecimalException as exc:
            raise CalculationError(f"Division by zero or overflow in conversion: {exc!r}") from exc
        try:
            result = amount * rate
        except DecimalException as exc:
            raise CalculationError(f"Overflow in amount calculation: {exc!r}") from exc

    return ConversionResult(result=result, rate=rate)


def _rate_against_base(snapshot: RateSnapshot, code: str) -> Decimal:
    if not snapshot.has_currency(code):
        raise UnknownCurrencyError(code)
    return ONE if code == snapshot.base else snapshot.rates[code]


def _check_divisor(value: Decimal, code: str) -> None:
    if not value.is_finite() or value == 0:
        raise CalculationError(f"Invalid rate {value} for {code}")


def _normalize(code: str) -> str:
    try:
        return normalize_currency(code)
    except ValueError as exc:
        raise UnknownCurrencyError(str(code or "").strip()) from exc
