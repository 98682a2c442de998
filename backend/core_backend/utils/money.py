"""
Decimal money helpers.

Never use float for money. Amounts are quantized to the currency's minor
unit with banker's rounding, and only at the final step of a calculation.
"""

from decimal import ROUND_HALF_EVEN, Decimal
from typing import Union

# Money columns store two decimal places, so only currencies with a minor
# unit of at most 0.01 are supported.
MONEY_DECIMAL_PLACES = 2

CURRENCY_EXPONENT = {
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
    "CAD": 2,
    "AUD": 2,
    "JPY": 0,
    "KRW": 0,
}

ZERO = Decimal("0")


def currency_exponent(currency: str) -> int:
    return CURRENCY_EXPONENT.get(currency.upper(), 2)


def quantize_decimal(currency: str) -> Decimal:
    """Smallest unit of the currency, e.g. Decimal('0.01') for USD."""
    exponent = currency_exponent(currency)
    return Decimal(1).scaleb(-exponent)


def to_decimal(amount: Union[Decimal, int, str]) -> Decimal:
    if isinstance(amount, float):
        raise TypeError("Money amounts must not be floats")
    return amount if isinstance(amount, Decimal) else Decimal(str(amount))


def quantize(currency: str, amount: Union[Decimal, int, str]) -> Decimal:
    """
    Round to the currency's minor unit using ROUND_HALF_EVEN.

    >>> quantize("USD", Decimal("10.125"))
    Decimal('10.12')
    """
    return to_decimal(amount).quantize(quantize_decimal(currency), rounding=ROUND_HALF_EVEN)
