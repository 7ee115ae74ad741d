"""
Numeric helpers shared by scoring and tracking.
"""

import math


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer, ties toward +inf.

    Built-in round() sends ties to even (2.5 -> 2); scores and percentages
    here use 2.5 -> 3 and -2.5 -> -2.
    """
    return math.floor(value + 0.5)


def is_finite_number(value) -> bool:
    """True for int/float values that are not bool, NaN or infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
