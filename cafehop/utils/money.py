"""Money helpers. Amounts are held as integer cents everywhere in the core."""
from decimal import Decimal, ROUND_HALF_UP
from fractions import Fraction
from typing import Union
import math
import numbers

CENT = Decimal('0.01')
HALF = Fraction(1, 2)

Amount = Union[int, float, str, Decimal]
Rate = Union[str, Decimal, numbers.Rational]


def to_cents(amount: Amount) -> int:
    """Convert a major-unit amount ('3.50', Decimal('3.5')) to cents"""
    if isinstance(amount, float):
        # Go through str so 3.5 doesn't carry binary noise
        amount = str(amount)
    value = Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)
    return int(value * 100)


def to_decimal(cents: int) -> Decimal:
    """Convert cents back to a Decimal in major units"""
    return (Decimal(cents) / 100).quantize(CENT)


def format_money(cents: int) -> str:
    return f"${to_decimal(cents):.2f}"


def to_rate(rate: Rate) -> Fraction:
    """Exact value of a rate given as Decimal, str, int, Fraction or float.

    Raises ValueError for text that isn't a number and for NaN or infinity.
    """
    if isinstance(rate, float):
        rate = str(rate)
    try:
        return Fraction(rate)
    except (OverflowError, ZeroDivisionError) as e:
        raise ValueError(f"Invalid rate {rate!r}: {e}") from e


def round_half_up(value: Fraction) -> int:
    magnitude = math.floor(abs(value) + HALF)
    return magnitude if value >= 0 else -magnitude


def apply_rate(cents: int, rate: Rate) -> int:
    """Multiply an amount by a rate, rounding half-up to the cent"""
    return round_half_up(cents * to_rate(rate))


def divide(cents: int, count: int) -> int:
    """Average an amount over count, rounding half-up to the cent"""
    if count <= 0:
        return 0
    return round_half_up(Fraction(cents, count))
