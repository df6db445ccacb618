"""
Currency conversion and the shared rounding primitive.

Rates are supplied by the caller, expressed against one anchor currency
(the anchor has rate 1.0). Conversion goes amount / rates[from] * rates[to].

Rounding is round-half-up to two places (ties away from zero). Every other
service rounds through round2() so all components agree to the cent.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Union

from tripsplit.utils.split_validation import UnknownCurrency

CENT = Decimal("0.01")
ZERO = Decimal("0")

Number = Union[Decimal, int, float, str]


def as_decimal(value: Number) -> Decimal:
    """Coerce a number to Decimal; floats go through str() to keep their printed value."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value: Number) -> Decimal:
    return as_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _rate(code: str, rates: Mapping[str, Number]) -> Decimal:
    if code not in rates:
        raise UnknownCurrency(code)
    return as_decimal(rates[code])


def convert(
    amount: Number,
    from_currency: str,
    to_currency: str,
    rates: Mapping[str, Number],
) -> Decimal:
    """
    Convert amount between two currencies of the rate table.

    Same-currency conversion returns the amount unchanged (no rounding, no
    rate lookup).
    Raises UnknownCurrency when either code is missing from the table.
    """
    source = from_currency.upper()
    target = to_currency.upper()
    if source == target:
        return as_decimal(amount)

    normalized = {code.upper(): rate for code, rate in rates.items()}
    from_rate = _rate(source, normalized)
    to_rate = _rate(target, normalized)

    return round2(as_decimal(amount) / from_rate * to_rate)
