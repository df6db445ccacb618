from decimal import Decimal

import pytest

from tripsplit.models.money import Money
from tripsplit.services.currency_service import as_decimal, convert, round2
from tripsplit.utils.split_validation import CurrencyMismatch, UnknownCurrency

RATES = {
    "USD": Decimal("1.0"),
    "EUR": Decimal("0.92"),
    "JPY": Decimal("149.50"),
    "INR": Decimal("83.12"),
}


def test_round2_rounds_half_up():
    assert round2(Decimal("2.675")) == Decimal("2.68")
    assert round2(Decimal("2.665")) == Decimal("2.67")
    assert round2(Decimal("0.125")) == Decimal("0.13")


def test_round2_ties_round_away_from_zero_for_negatives():
    assert round2(Decimal("-2.675")) == Decimal("-2.68")


def test_as_decimal_keeps_printed_float_value():
    assert as_decimal(0.1) == Decimal("0.1")
    assert as_decimal("19.99") == Decimal("19.99")
    assert as_decimal(5) == Decimal("5")


def test_convert_goes_through_anchor_rate():
    # 100 / 0.92 = 108.6956...
    assert convert(Decimal("100"), "EUR", "USD", RATES) == Decimal("108.70")
    assert convert(Decimal("100"), "USD", "JPY", RATES) == Decimal("14950.00")


def test_convert_same_currency_is_unchanged_and_unrounded():
    amount = Decimal("10.005")
    assert convert(amount, "EUR", "EUR", RATES) == amount


def test_convert_same_currency_needs_no_rate():
    assert convert(Decimal("3"), "XYZ", "xyz", {}) == Decimal("3")


def test_convert_is_case_insensitive():
    assert convert(Decimal("100"), "usd", "eur", RATES) == Decimal("92.00")


def test_convert_unknown_currency():
    with pytest.raises(UnknownCurrency) as exc:
        convert(Decimal("10"), "USD", "GBP", RATES)
    assert exc.value.code == "GBP"

    with pytest.raises(UnknownCurrency):
        convert(Decimal("10"), "CHF", "USD", RATES)


def test_money_to_converts_and_keeps_currency():
    money = Money(amount=Decimal("50"), currency="usd")
    converted = money.to("EUR", RATES)

    assert converted.currency == "EUR"
    assert converted.amount == Decimal("46.00")


def test_money_refuses_mixed_currency_arithmetic():
    usd = Money(amount=Decimal("1"), currency="USD")
    eur = Money(amount=Decimal("1"), currency="EUR")

    assert (usd + usd).amount == Decimal("2")
    with pytest.raises(CurrencyMismatch):
        usd + eur
    with pytest.raises(CurrencyMismatch):
        usd < eur
