"""
Monetary math for the reports engine.

All amounts are Decimal quantized to cents. Percentages are Decimal with
two fractional digits. Binary floats are rejected.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

# Tolerance for balance checks, one currency cent
EPSILON = CENT

Number = Union[Decimal, int, str]


def to_money(value: Number) -> Decimal:
    """Convert to a cent-quantized Decimal."""
    if isinstance(value, float):
        raise TypeError("Monetary values must not be binary floats")
    if not isinstance(value, Decimal):
        value = Decimal(value)
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_percent(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Number]) -> Decimal:
    total = Decimal("0")
    for value in values:
        total += to_money(value)
    return to_money(total)


def sum_breakdown(entries: Mapping[str, Number]) -> Decimal:
    """Total of a category breakdown."""
    return sum_money(entries.values())


def growth_rate(current: Number, previous: Number) -> Decimal:
    """
    Period-over-period growth in percent.

    A zero previous value yields 100 when current is positive and 0
    otherwise; it never divides by zero.
    """
    current = Decimal(current)
    previous = Decimal(previous)
    if previous == 0:
        return to_percent(HUNDRED if current > 0 else Decimal("0"))
    return to_percent((current - previous) / abs(previous) * HUNDRED)


def margin_percent(numerator: Number, denominator: Number) -> Decimal:
    """numerator / denominator in percent, 0 when the denominator is zero."""
    numerator = Decimal(numerator)
    denominator = Decimal(denominator)
    if denominator == 0:
        return to_percent(Decimal("0"))
    return to_percent(numerator / denominator * HUNDRED)


def is_balanced(left: Number, right: Number) -> bool:
    return abs(Decimal(left) - Decimal(right)) < EPSILON
