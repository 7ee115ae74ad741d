"""
Scoring Curves

Smooth curves used by the momentum score instead of linear jumps, so
scores land on values like 27, 48, 63 rather than multiples of 5.

- log_curve: diminishing returns (the 1st citation matters far more than the 9th)
- sigmoid: bounded response to a week-over-week change ratio
"""

import math


def log_curve(value: float, half_point: float, max_output: float) -> float:
    """
    Diminishing-returns curve mapping [0, inf) onto [0, max_output).

    Calibrated so that value == half_point yields exactly max_output / 2:

        max_output * (1 - 2 ** (-value / half_point))

    which is max_output * (1 - e^(-value * ln2 / half_point)). The plain
    e^(-value / half_point) form would give ~0.63 * max_output there. With this
    form 5 new citations and no prior week earn 8 momentum points, not 7.

    Args:
        value: Raw input (e.g. citation count)
        half_point: Input at which half of max_output is reached
        max_output: Asymptotic ceiling

    Returns:
        Unrounded curve output (0 for value <= 0)
    """
    if value <= 0:
        return 0.0
    return max_output * (1 - math.exp(-value * math.log(2) / half_point))


def sigmoid(x: float) -> float:
    """
    S-curve mapping (-inf, inf) onto (-1, 1).

    2 / (1 + e^(-3x)) - 1. A +100% change gives ~0.91, -50% gives ~-0.64.
    """
    # Guard the exponent; math.exp overflows past ~709
    exponent = max(-700.0, min(700.0, -3 * x))
    return (2 / (1 + math.exp(exponent))) - 1


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))
