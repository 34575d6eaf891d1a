# miqat/core/qibla.py
"""
Qibla: bearing and distance from an observer to the Kaaba.

Vincenty on WGS-84 is the primary path. If it fails to converge (only near the
Kaaba's antipode) the result comes from the spherical great-circle formulas
and is tagged method="spherical".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from miqat.core.constants import KAABA_LAT, KAABA_LON, round_half_up, wrap360
from miqat.core.geodesy import great_circle_bearing, haversine_distance, vincenty_inverse
from miqat.core.models import GeoPoint, is_finite_number
from miqat.core.providers import MagneticProvider

log = logging.getLogger(__name__)

__all__ = [
    "QiblaResult",
    "CoordinateReport",
    "QiblaEngine",
    "compute_qibla",
    "compass_8",
    "compass_8_full",
    "compass_16",
    "apply_magnetic_declination",
    "validate_coordinates",
]

_POINTS_8 = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")
_POINTS_8_FULL = ("North", "North-East", "East", "South-East",
                  "South", "South-West", "West", "North-West")
_POINTS_16 = ("N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
              "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW")

_KAABA_EPS_DEG = 0.01


# ───────────────────────────── compass ─────────────────────────────
def compass_8(bearing: float) -> str:
    return _POINTS_8[round_half_up(bearing / 45.0) % 8]


def compass_8_full(bearing: float) -> str:
    return _POINTS_8_FULL[round_half_up(bearing / 45.0) % 8]


def compass_16(bearing: float) -> str:
    return _POINTS_16[round_half_up(bearing / 22.5) % 16]


def apply_magnetic_declination(true_bearing: float, declination: float) -> float:
    """Magnetic = true − declination (east positive), in [0, 360)."""
    return wrap360(true_bearing - declination)


# ───────────────────────────── validation ─────────────────────────────
@dataclass(frozen=True)
class CoordinateReport:
    valid: bool
    errors: List[str] = field(default_factory=list)
    is_at_kaaba: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors), "is_at_kaaba": self.is_at_kaaba}


def validate_coordinates(latitude: Any, longitude: Any) -> CoordinateReport:
    """Non-raising report, for callers that want every problem at once."""
    errors: List[str] = []
    if not is_finite_number(latitude):
        errors.append("Latitude must be a valid number")
    elif not (-90.0 <= latitude <= 90.0):
        errors.append("Latitude must be between -90 and 90")
    if not is_finite_number(longitude):
        errors.append("Longitude must be a valid number")
    elif not (-180.0 <= longitude <= 180.0):
        errors.append("Longitude must be between -180 and 180")

    at_kaaba = (not errors
                and abs(latitude - KAABA_LAT) < _KAABA_EPS_DEG
                and abs(longitude - KAABA_LON) < _KAABA_EPS_DEG)
    return CoordinateReport(valid=not errors, errors=errors, is_at_kaaba=at_kaaba)


# ───────────────────────────── engine ─────────────────────────────
@dataclass(frozen=True)
class QiblaResult:
    location: GeoPoint
    distance_m: float
    true_bearing_deg: float
    method: str                                  # "vincenty" | "spherical"
    declination_deg: float = 0.0
    magnetic_bearing_deg: Optional[float] = None

    @property
    def compass(self) -> str:
        return compass_8(self.true_bearing_deg)

    @property
    def compass_full(self) -> str:
        return compass_8_full(self.true_bearing_deg)

    @property
    def compass16(self) -> str:
        return compass_16(self.true_bearing_deg)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location.to_dict(),
            "kaaba": {"latitude": KAABA_LAT, "longitude": KAABA_LON},
            "direction": round(self.true_bearing_deg, 2),
            "direction_raw": self.true_bearing_deg,
            "compass": self.compass,
            "compass_full": self.compass_full,
            "compass16": self.compass16,
            "distance_m": self.distance_m,
            "distance_km": round(self.distance_m / 1000.0, 1),
            "method": self.method,
            "declination": self.declination_deg,
            "magnetic_direction": (None if self.magnetic_bearing_deg is None
                                   else round(self.magnetic_bearing_deg, 2)),
        }


class QiblaEngine:
    def __init__(self, magnetic_provider: Optional[MagneticProvider] = None):
        self.magnetic_provider = magnetic_provider

    def compute_qibla(self, latitude: float, longitude: float) -> QiblaResult:
        location = GeoPoint(latitude, longitude)
        inv = vincenty_inverse(latitude, longitude, KAABA_LAT, KAABA_LON)
        if inv.converged:
            return QiblaResult(location, inv.distance_m, inv.initial_bearing_deg, "vincenty")

        log.warning("Vincenty did not converge after %d iterations for (%.6f, %.6f); using great circle",
                    inv.iterations, latitude, longitude)
        return QiblaResult(
            location,
            haversine_distance(latitude, longitude, KAABA_LAT, KAABA_LON),
            great_circle_bearing(latitude, longitude, KAABA_LAT, KAABA_LON),
            "spherical",
        )

    async def compute_qibla_with_magnetic(self, latitude: float, longitude: float,
                                          altitude: float = 0.0) -> QiblaResult:
        base = self.compute_qibla(latitude, longitude)
        if self.magnetic_provider is None:
            return base

        try:
            declination = float(await self.magnetic_provider.get_declination(latitude, longitude, altitude))
        except Exception as e:  # any rejection means declination 0
            log.warning("magnetic provider failed (%s); using declination 0", e)
            declination = 0.0

        return QiblaResult(
            location=base.location,
            distance_m=base.distance_m,
            true_bearing_deg=base.true_bearing_deg,
            method=base.method,
            declination_deg=declination,
            magnetic_bearing_deg=apply_magnetic_declination(base.true_bearing_deg, declination),
        )


_default_engine = QiblaEngine()


def compute_qibla(latitude: float, longitude: float) -> QiblaResult:
    return _default_engine.compute_qibla(latitude, longitude)
