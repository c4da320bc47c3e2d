"""
Sample smoothing for projected joint values.
"""

from collections import deque
from typing import Deque, Optional

import numpy as np


class ValueSmoother:
    """
    Moving average over the last ``window`` samples.

    A None sample is passed through unchanged so an occluded frame is still
    skipped by the counter instead of being filled from history.
    """

    def __init__(self, window: int = 1):
        if window < 1:
            raise ValueError(f"window must be >= 1, got {window}")
        self._window = window
        self._history: Deque[float] = deque(maxlen=window)

    @property
    def window(self) -> int:
        return self._window

    def smooth(self, value: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        self._history.append(value)
        if self._window == 1:
            return value
        return float(np.mean(self._history))

    def reset(self) -> None:
        self._history.clear()
