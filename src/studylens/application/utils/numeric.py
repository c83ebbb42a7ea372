"""Small numeric helpers for the analytics engines."""

import math
from collections.abc import Sequence


def round_half_up(value: float) -> int:
    """Round halves away from zero. Python's round() rounds halves to even."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_variance(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    m = mean(values)
    return sum((v - m) ** 2 for v in values) / len(values)


def population_stdev(values: Sequence[float]) -> float:
    return math.sqrt(population_variance(values))


def ceil_ratio(numerator: float, denominator: float) -> int:
    """
    ceil(numerator / denominator), tolerant of float noise.

    (0.8 - 0.7) / 0.1 is 1.0000000000000002 in floating point; this returns 1.
    """
    return math.ceil(round(numerator / denominator, 9))
