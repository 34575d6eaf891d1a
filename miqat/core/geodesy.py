# miqat/core/geodesy.py
"""
Ellipsoidal (WGS-84) inverse geodesic via Vincenty's iteration, plus the
spherical great-circle formulas used as a degraded path.

vincenty_inverse() never raises for geometry: coincident points give a valid
zero result, non-convergence (near-antipodal pairs) gives converged=False with
no distance/bearing. Those two outcomes must never be conflated.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import math

from miqat.core.constants import WGS84_A, WGS84_B, WGS84_F, wrap360

__all__ = [
    "InverseResult",
    "vincenty_inverse",
    "haversine_distance",
    "great_circle_bearing",
    "MEAN_EARTH_RADIUS_M",
]

MEAN_EARTH_RADIUS_M = 6371008.8  # IUGG mean radius
_TOL = 1e-12
_MAX_ITER = 100


@dataclass(frozen=True)
class InverseResult:
    converged: bool
    distance_m: Optional[float]
    initial_bearing_deg: Optional[float]
    final_bearing_deg: Optional[float]
    iterations: int

    @classmethod
    def failed(cls, iterations: int) -> "InverseResult":
        return cls(False, None, None, None, iterations)


def vincenty_inverse(lat1: float, lon1: float, lat2: float, lon2: float) -> InverseResult:
    a, b, f = WGS84_A, WGS84_B, WGS84_F

    L = math.radians(lon2 - lon1)
    U1 = math.atan((1 - f) * math.tan(math.radians(lat1)))
    U2 = math.atan((1 - f) * math.tan(math.radians(lat2)))
    sinU1, cosU1 = math.sin(U1), math.cos(U1)
    sinU2, cosU2 = math.sin(U2), math.cos(U2)

    lam = L
    iterations = 0
    converged = False
    sin_sigma = cos_sigma = sigma = cos_sq_alpha = cos2_sigma_m = 0.0
    sin_lam = cos_lam = 0.0

    while iterations < _MAX_ITER:
        iterations += 1
        sin_lam, cos_lam = math.sin(lam), math.cos(lam)
        sin_sigma = math.hypot(cosU2 * sin_lam, cosU1 * sinU2 - sinU1 * cosU2 * cos_lam)
        if sin_sigma == 0.0:
            # coincident points
            return InverseResult(True, 0.0, 0.0, 0.0, iterations)

        cos_sigma = sinU1 * sinU2 + cosU1 * cosU2 * cos_lam
        sigma = math.atan2(sin_sigma, cos_sigma)
        sin_alpha = cosU1 * cosU2 * sin_lam / sin_sigma
        cos_sq_alpha = 1 - sin_alpha * sin_alpha
        # equatorial line: cos²α = 0
        cos2_sigma_m = cos_sigma - 2 * sinU1 * sinU2 / cos_sq_alpha if cos_sq_alpha != 0.0 else 0.0

        C = f / 16 * cos_sq_alpha * (4 + f * (4 - 3 * cos_sq_alpha))
        lam_prev = lam
        lam = L + (1 - C) * f * sin_alpha * (
            sigma + C * sin_sigma * (cos2_sigma_m + C * cos_sigma * (-1 + 2 * cos2_sigma_m * cos2_sigma_m))
        )
        if abs(lam - lam_prev) <= _TOL:
            converged = True
            break

    if not converged:
        return InverseResult.failed(iterations)

    u_sq = cos_sq_alpha * (a * a - b * b) / (b * b)
    A = 1 + u_sq / 16384 * (4096 + u_sq * (-768 + u_sq * (320 - 175 * u_sq)))
    B = u_sq / 1024 * (256 + u_sq * (-128 + u_sq * (74 - 47 * u_sq)))
    delta_sigma = B * sin_sigma * (cos2_sigma_m + B / 4 * (
        cos_sigma * (-1 + 2 * cos2_sigma_m * cos2_sigma_m)
        - B / 6 * cos2_sigma_m * (-3 + 4 * sin_sigma * sin_sigma) * (-3 + 4 * cos2_sigma_m * cos2_sigma_m)
    ))
    s = b * A * (sigma - delta_sigma)

    sin_lam, cos_lam = math.sin(lam), math.cos(lam)
    fwd = math.atan2(cosU2 * sin_lam, cosU1 * sinU2 - sinU1 * cosU2 * cos_lam)
    rev = math.atan2(cosU1 * sin_lam, -sinU1 * cosU2 + cosU1 * sinU2 * cos_lam)

    return InverseResult(
        converged=True,
        distance_m=s,
        initial_bearing_deg=wrap360(math.degrees(fwd)),
        final_bearing_deg=wrap360(math.degrees(rev)),
        iterations=iterations,
    )


# ───────────────────────────── spherical ─────────────────────────────
def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float,
                       radius_m: float = MEAN_EARTH_RADIUS_M) -> float:
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dp = p2 - p1
    dl = math.radians(lon2 - lon1)
    h = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return 2 * radius_m * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def great_circle_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dl = math.radians(lon2 - lon1)
    x = math.sin(dl) * math.cos(p2)
    y = math.cos(p1) * math.sin(p2) - math.sin(p1) * math.cos(p2) * math.cos(dl)
    return wrap360(math.degrees(math.atan2(x, y)))
