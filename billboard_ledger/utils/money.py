"""Decimal helpers for money arithmetic"""

from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Iterable, Union

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
CENT = Decimal("0.01")
TENTH = Decimal("0.1")
HUNDRED = Decimal("100")


def to_decimal(value: Number | None) -> Decimal:
    """
    Coerce a stored amount into a Decimal.

    Missing values (None, empty string) count as zero, matching how the
    external store leaves optional amount columns blank. Floats go through
    their shortest repr so 0.1 becomes Decimal("0.1"), not the binary expansion.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round2(value: Number) -> Decimal:
    """Round half-up to cents"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round1(value: Number) -> Decimal:
    """Round half-up to one decimal place (percentages)"""
    return to_decimal(value).quantize(TENTH, rounding=ROUND_HALF_UP)


def floor2(value: Number) -> Decimal:
    """Floor to cents"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_FLOOR)


def money_sum(values: Iterable[Number]) -> Decimal:
    """Sum amounts as Decimal, treating blanks as zero"""
    return sum((to_decimal(v) for v in values), ZERO)


def clamp(value: Decimal, low: Decimal, high: Decimal | None = None) -> Decimal:
    if value < low:
        return low
    if high is not None and value > high:
        return high
    return value
