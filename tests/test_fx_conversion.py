from __future__ import annotations

from datetime import date
from decimal import Decimal, localcontext

import pytest

from currency_api.errors import CalculationError, InvalidAmountError, UnknownCurrencyError
from currency_api.services.fx_conversion import ONE, convert, get_decimal_context, rebase
from currency_api.services.snapshot import RateSnapshot, build_snapshot


def test_rebase_onto_current_base_returns_same_snapshot(simple_snapshot):
    assert rebase(simple_snapshot, "EUR") is simple_snapshot
    assert rebase(simple_snapshot, " eur ") is simple_snapshot


def test_rebase_inverts_old_base_and_drops_new_base(simple_snapshot):
    rebased = rebase(simple_snapshot, "USD")

    assert rebased.base == "USD"
    assert rebased.date == simple_snapshot.date
    assert "USD" not in rebased.rates
    assert rebased.rates["EUR"] == Decimal("0.8")
    assert rebased.rates["GBP"] == Decimal("0.64")
    assert rebased.rates["JPY"] == Decimal("128")


def test_rebase_does_not_touch_original(simple_snapshot):
    rebase(simple_snapshot, "GBP")
    assert simple_snapshot.base == "EUR"
    assert simple_snapshot.rates["USD"] == Decimal("1.25")


def test_rebase_unknown_currency(simple_snapshot):
    with pytest.raises(UnknownCurrencyError) as exc_info:
        rebase(simple_snapshot, "XYZ")
    assert exc_info.value.code == "XYZ"
    assert exc_info.value.status_code == 404


def test_rebase_zero_rate_is_calculation_error():
    snapshot = RateSnapshot(date=date(2024, 1, 15), base="EUR", rates={"USD": Decimal("0")})
    with pytest.raises(CalculationError):
        rebase(snapshot, "USD")


def test_convert_cross_rate(simple_snapshot):
    conversion = convert(simple_snapshot, "USD", "GBP", Decimal("100"))
    assert conversion.rate == Decimal("0.64")
    assert conversion.result == Decimal("64.00")


def test_convert_from_base(simple_snapshot):
    conversion = convert(simple_snapshot, "EUR", "JPY", Decimal("2"))
    assert conversion.rate == Decimal("160")
    assert conversion.result == Decimal("320")


def test_convert_into_base(simple_snapshot):
    conversion = convert(simple_snapshot, "GBP", "EUR", Decimal("8"))
    assert conversion.rate == Decimal("1.25")
    assert conversion.result == Decimal("10.00")


def test_convert_normalizes_codes(simple_snapshot):
    conversion = convert(simple_snapshot, " usd", "gbp ", Decimal("1"))
    assert conversion.rate == Decimal("0.64")


def test_convert_identity_returns_amount_unchanged(simple_snapshot):
    conversion = convert(simple_snapshot, "USD", "USD", Decimal("42.50"))
    assert conversion.result == Decimal("42.50")
    assert conversion.rate == ONE


def test_convert_identity_skips_rate_lookup(simple_snapshot):
    conversion = convert(simple_snapshot, "xyz", "XYZ", Decimal("3"))
    assert conversion.result == Decimal("3")
    assert conversion.rate == ONE


@pytest.mark.parametrize("source,target", [("XYZ", "USD"), ("USD", "XYZ")])
def test_convert_unknown_currency(simple_snapshot, source, target):
    with pytest.raises(UnknownCurrencyError) as exc_info:
        convert(simple_snapshot, source, target, Decimal("1"))
    assert exc_info.value.code == "XYZ"


def test_convert_blank_code_is_unknown(simple_snapshot):
    with pytest.raises(UnknownCurrencyError):
        convert(simple_snapshot, "  ", "USD", Decimal("1"))


@pytest.mark.parametrize(
    "amount",
    [Decimal("-1"), Decimal("NaN"), Decimal("Infinity"), 1.5],
)
def test_convert_rejects_invalid_amount(simple_snapshot, amount):
    with pytest.raises(InvalidAmountError):
        convert(simple_snapshot, "USD", "GBP", amount)


def test_convert_zero_amount(simple_snapshot):
    conversion = convert(simple_snapshot, "USD", "JPY", Decimal("0"))
    assert conversion.result == Decimal("0")
    assert conversion.rate == Decimal("128")


def test_convert_zero_source_rate_is_calculation_error():
    snapshot = RateSnapshot(
        date=date(2024, 1, 15),
        base="EUR",
        rates={"USD": Decimal("0"), "GBP": Decimal("0.8")},
    )
    with pytest.raises(CalculationError):
        convert(snapshot, "USD", "GBP", Decimal("1"))


def test_convert_overflow_is_calculation_error(simple_snapshot):
    with pytest.raises(CalculationError):
        convert(simple_snapshot, "EUR", "JPY", Decimal("9E+999999"))


def test_scenario_conversion_matches_published_rates(eur_snapshot):
    conversion = convert(eur_snapshot, "USD", "JPY", Decimal("100"))

    with localcontext(get_decimal_context()):
        expected_rate = Decimal("181.28") / Decimal("1.1668")
    assert conversion.rate == expected_rate
    assert conversion.result.quantize(Decimal("0.01")) == Decimal("15536.51")


def test_scenario_rebase_agrees_with_direct_conversion(eur_snapshot):
    rebased = rebase(eur_snapshot, "USD")
    direct = convert(eur_snapshot, "USD", "JPY", Decimal("1"))

    with localcontext(get_decimal_context()):
        expected_eur = ONE / Decimal("1.1668")

    assert rebased.base == "USD"
    assert "USD" not in rebased.rates
    assert rebased.rates["JPY"] == direct.rate
    assert rebased.rates["EUR"] == expected_eur
    assert rebased.rates["EUR"].quantize(Decimal("0.0001")) == Decimal("0.8570")


def test_decimal_context_uses_bankers_rounding():
    context = get_decimal_context()
    assert context.prec == 28
    assert context.create_decimal("2.5").quantize(Decimal("1"), context=context) == Decimal("2")


def _three_currency_snapshot():
    return build_snapshot(
        "2024-01-15", "EUR", [("USD", "1.1668"), ("JPY", "181.28"), ("GBP", "0.8737")]
    )


@pytest.mark.parametrize(
    "table,path",
    [
        ("three", ("USD", "JPY", "GBP")),
        ("three", ("EUR", "USD", "JPY")),
        ("three", ("USD", "EUR", "JPY")),
        ("three", ("JPY", "GBP", "EUR")),
        ("three", ("GBP", "USD", "EUR")),
        ("eur", ("USD", "EUR", "JPY")),
        ("eur", ("JPY", "USD", "EUR")),
    ],
)
def test_cross_rates_chain_consistently(eur_snapshot, table, path):
    snapshot = eur_snapshot if table == "eur" else _three_currency_snapshot()
    first, middle, last = path

    leg_one = convert(snapshot, first, middle, ONE).rate
    leg_two = convert(snapshot, middle, last, ONE).rate
    direct = convert(snapshot, first, last, ONE).rate

    with localcontext(get_decimal_context()):
        chained = leg_one * leg_two
        # Each leg is rounded to 28 digits, so allow drift in the last places.
        assert abs(chained - direct) <= direct.scaleb(-26)
