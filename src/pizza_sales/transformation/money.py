"""
Exact decimal helpers for monetary amounts.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

import pandas as pd

ZERO = Decimal('0')
UNIT = Decimal('1')


def to_decimal(value):
    """
    Convert a price-like value to Decimal.

    Floats go through their shortest repr so 13.25 stays 13.25 instead of
    picking up binary noise.
    """
    if isinstance(value, Decimal):
        return value
    if value is None or (isinstance(value, float) and pd.isna(value)):
        raise ValueError("Cannot convert a missing value to Decimal")
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid monetary value: {value!r}")


def decimal_sum(values):
    """Sum an iterable of Decimals exactly; an empty iterable sums to 0."""
    return sum(values, ZERO)


def round_half_up(value, places=2):
    """Round away from zero on ties to the given number of decimal places."""
    exponent = UNIT if places == 0 else Decimal(1).scaleb(-places)
    return Decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def percentage(part, total, places=2):
    """
    part / total * 100, rounded half-up.

    A zero total yields 0 rather than a division error.
    """
    if total == 0:
        return round_half_up(ZERO, places)
    return round_half_up(Decimal(part) / Decimal(total) * 100, places)
