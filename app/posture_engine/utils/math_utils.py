"""Numeric helpers shared by the counter and the scorers."""

import math

import numpy as np


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 always upwards (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clip a score into [low, high]."""
    return float(np.clip(value, low, high))
