# miqat/core/filters.py
"""
Smoothing for noisy compass / sensor readings.

LowPassFilter is an exponential moving average. AngleLowPassFilter smooths
the sine and cosine separately so headings wrap correctly: 359° and 1°
average to 0°, not 180°.
"""
from __future__ import annotations

import math
from typing import Optional

__all__ = ["LowPassFilter", "AngleLowPassFilter"]


class LowPassFilter:
    def __init__(self, alpha: float = 0.25):
        # lower alpha = smoother, more lag; 0.1-0.25 suits a compass
        if not (0.0 < alpha <= 1.0):
            raise ValueError("alpha must be in (0, 1]")
        self.alpha = alpha
        self.last: Optional[float] = None

    def next(self, value: float) -> float:
        if self.last is None:
            self.last = value
        else:
            self.last += self.alpha * (value - self.last)
        return self.last

    def reset(self) -> None:
        self.last = None


class AngleLowPassFilter:
    def __init__(self, alpha: float = 0.25):
        self.alpha = alpha
        self._sin = LowPassFilter(alpha)
        self._cos = LowPassFilter(alpha)

    def next(self, degrees: float) -> float:
        """Smoothed heading in [0, 360)."""
        rad = math.radians(degrees)
        s = self._sin.next(math.sin(rad))
        c = self._cos.next(math.cos(rad))
        return math.degrees(math.atan2(s, c)) % 360.0

    def reset(self) -> None:
        self._sin.reset()
        self._cos.reset()
