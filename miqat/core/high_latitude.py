# miqat/core/high_latitude.py
"""
High-latitude fallbacks for Fajr/Isha when the sun never reaches the
twilight angle (short summer nights, polar day).

Only unavailable values are filled; a computable time is returned unchanged.
Without both sunrise and sunset there is no night to divide, so the value
stays unavailable.
"""
from __future__ import annotations

from typing import Optional

from miqat.core.models import HighLatitudeMethod

__all__ = [
    "DEFAULT_THRESHOLD",
    "DEFAULT_ISHA_ANGLE",
    "night_duration",
    "night_portion",
    "adjust_fajr",
    "adjust_isha",
    "requires_adjustment",
    "recommend_method",
]

DEFAULT_THRESHOLD = 48.0
# Used for angle-based Isha when the method defines Isha in minutes.
DEFAULT_ISHA_ANGLE = 17.0


def night_duration(sunrise: float, sunset: float) -> float:
    """Hours from sunset to next sunrise (wraps across midnight)."""
    return (24.0 - sunset) + sunrise


def night_portion(method: HighLatitudeMethod, angle: Optional[float], night: float) -> Optional[float]:
    if method is HighLatitudeMethod.MIDDLE_OF_NIGHT:
        return night / 2.0
    if method is HighLatitudeMethod.ONE_SEVENTH:
        return night / 7.0
    if method is HighLatitudeMethod.ANGLE_BASED:
        return (angle / 60.0) * (night / 2.0)
    return None


def adjust_fajr(fajr: Optional[float], sunrise: Optional[float], sunset: Optional[float],
                angle: Optional[float], method: HighLatitudeMethod) -> Optional[float]:
    if fajr is not None or method is HighLatitudeMethod.NONE:
        return fajr
    if sunrise is None or sunset is None:
        return None
    portion = night_portion(method, angle, night_duration(sunrise, sunset))
    return None if portion is None else sunrise - portion


def adjust_isha(isha: Optional[float], sunrise: Optional[float], sunset: Optional[float],
                angle: Optional[float], method: HighLatitudeMethod) -> Optional[float]:
    if isha is not None or method is HighLatitudeMethod.NONE:
        return isha
    if sunrise is None or sunset is None:
        return None
    portion = night_portion(method, angle or DEFAULT_ISHA_ANGLE, night_duration(sunrise, sunset))
    return None if portion is None else sunset + portion


def requires_adjustment(latitude: float, threshold: float = DEFAULT_THRESHOLD) -> bool:
    return abs(latitude) >= threshold


def recommend_method(latitude: float) -> HighLatitudeMethod:
    """Coarse severity ladder by |latitude|. Heuristic, not physically derived."""
    a = abs(latitude)
    if a < 48:
        return HighLatitudeMethod.NONE
    if a < 55:
        return HighLatitudeMethod.ANGLE_BASED
    if a < 60:
        return HighLatitudeMethod.ONE_SEVENTH
    return HighLatitudeMethod.MIDDLE_OF_NIGHT
