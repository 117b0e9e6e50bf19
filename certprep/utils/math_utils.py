"""Numeric helpers."""
import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's ``round`` uses banker's rounding (``round(82.5) == 82``);
    scores and percentages shown to users round 0.5 up.
    """
    return int(math.floor(value + 0.5))


def percentage(part: int, whole: int) -> int:
    """``part / whole`` as a rounded percentage, 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)
