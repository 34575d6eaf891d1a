# miqat/core/constants.py
# -*- coding: utf-8 -*-
"""
Core constants & tiny angle helpers

Single source of truth for:
- degree/radian conversion and epoch constants (J2000, Julian century)
- sunrise/sunset altitude and Asr shadow factors
- Kaaba coordinate
- WGS-84 ellipsoid
- prayer names in canonical order

Pure Python, safe to import from any core module.
"""

from __future__ import annotations
from typing import Tuple
import math

__all__ = [
    "DEG_TO_RAD", "RAD_TO_DEG",
    "J2000", "JULIAN_CENTURY",
    "SUN_RISE_SET_ANGLE", "ASR_FACTOR_SHAFI", "ASR_FACTOR_HANAFI",
    "KAABA_LAT", "KAABA_LON",
    "WGS84_A", "WGS84_F", "WGS84_B",
    "PRAYERS", "UNAVAILABLE",
    "wrap360", "round_half_up",
]

# ── angles ───────────────────────────────────────────────────────────────────
DEG_TO_RAD: float = math.pi / 180.0
RAD_TO_DEG: float = 180.0 / math.pi

# ── epochs ───────────────────────────────────────────────────────────────────
J2000: float = 2451545.0          # JD of 2000-01-01 12:00 TT
JULIAN_CENTURY: float = 36525.0   # days

# ── sun altitudes / shadows ──────────────────────────────────────────────────
SUN_RISE_SET_ANGLE: float = 0.833  # refraction + solar semi-diameter
ASR_FACTOR_SHAFI: int = 1          # Shafi'i, Maliki, Hanbali
ASR_FACTOR_HANAFI: int = 2

# ── Kaaba (Masjid al-Haram) ──────────────────────────────────────────────────
KAABA_LAT: float = 21.422487
KAABA_LON: float = 39.826206

# ── WGS-84 ellipsoid (meters) ────────────────────────────────────────────────
WGS84_A: float = 6378137.0
WGS84_F: float = 1.0 / 298.257223563
WGS84_B: float = 6356752.314245

# ── prayers ──────────────────────────────────────────────────────────────────
PRAYERS: Tuple[str, ...] = ("fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha")

# Rendered in place of a time that has no sun crossing.
UNAVAILABLE: str = "--:--"


def wrap360(x: float) -> float:
    v = math.fmod(float(x), 360.0)
    if v < 0.0:
        v += 360.0
    return 0.0 if abs(v) < 1e-12 or v >= 360.0 else v


def round_half_up(x: float) -> int:
    """Round to nearest integer, ties toward +inf (not banker's rounding)."""
    return int(math.floor(x + 0.5))
