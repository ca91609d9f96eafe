"""Rounding helpers."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up (2.5 -> 3).

    The built-in ``round`` rounds halves to even, which would make scores
    depend on the parity of the neighbouring integer.
    """
    return int(math.floor(value + 0.5))


def round_to_tenth(value: float) -> float:
    """Round half-up to one decimal place."""
    return round_half_up(value * 10) / 10
