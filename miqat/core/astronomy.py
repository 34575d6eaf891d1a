# miqat/core/astronomy.py
# -*- coding: utf-8 -*-
"""
Solar position for prayer-time work (NOAA Solar Calculator series).

Reference: https://gml.noaa.gov/grad/solcalc/calcdetails.html

Everything here is a pure function of the calendar date / Julian century and
the observer's position. Angles are degrees; radians appear only at the trig
call boundary. Hour angles are returned as non-negative magnitudes; the caller
applies the sign (before/after solar noon).

hour_angle() returns None, not an error, when the sun never reaches the
requested altitude on that day at that latitude. That None is what triggers
the high-latitude policies in the calculator.

Public API:
    julian_day(date) -> float
    julian_century(jd) -> float
    solar_declination(T) -> float           (degrees)
    equation_of_time(T) -> float            (minutes)
    hour_angle(alt, lat, dec) -> float|None (degrees)
    asr_hour_angle(factor, lat, dec) -> float|None
    solar_noon(lon, eot_min, tz_hours) -> float
    solar_position(date) -> SolarPosition
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date as Date
from typing import Optional
import math

from miqat.core.constants import DEG_TO_RAD, RAD_TO_DEG, J2000, JULIAN_CENTURY

__all__ = [
    "SolarPosition",
    "julian_day", "julian_century",
    "sun_mean_longitude", "sun_mean_anomaly", "earth_orbit_eccentricity",
    "sun_equation_of_center", "sun_true_longitude", "sun_apparent_longitude",
    "mean_obliquity", "obliquity_correction",
    "solar_declination", "equation_of_time",
    "hour_angle", "asr_hour_angle", "solar_noon", "sun_altitude",
    "solar_position",
]


# ───────────────────────────── calendar ─────────────────────────────
def julian_day(d: Date) -> float:
    """Julian Day at 0h UT of a proleptic Gregorian date (years after 1582)."""
    year, month, day = d.year, d.month, d.day
    if month <= 2:
        year -= 1
        month += 12
    a = math.floor(year / 100)
    b = 2 - a + math.floor(a / 4)
    return (math.floor(365.25 * (year + 4716))
            + math.floor(30.6001 * (month + 1))
            + day + b - 1524.5)


def julian_century(jd: float) -> float:
    return (jd - J2000) / JULIAN_CENTURY


# ───────────────────────────── NOAA series ─────────────────────────────
def sun_mean_longitude(T: float) -> float:
    """Geometric mean longitude, normalized to [0, 360)."""
    l0 = 280.46646 + T * (36000.76983 + 0.0003032 * T)
    return l0 % 360.0


def sun_mean_anomaly(T: float) -> float:
    return 357.52911 + T * (35999.05029 - 0.0001537 * T)


def earth_orbit_eccentricity(T: float) -> float:
    return 0.016708634 - T * (0.000042037 + 0.0000001267 * T)


def sun_equation_of_center(T: float) -> float:
    m = sun_mean_anomaly(T) * DEG_TO_RAD
    return (math.sin(m) * (1.914602 - T * (0.004817 + 0.000014 * T))
            + math.sin(2 * m) * (0.019993 - 0.000101 * T)
            + math.sin(3 * m) * 0.000289)


def sun_true_longitude(T: float) -> float:
    return sun_mean_longitude(T) + sun_equation_of_center(T)


def _omega(T: float) -> float:
    # longitude of the Moon's ascending node (nutation term)
    return 125.04 - 1934.136 * T


def sun_apparent_longitude(T: float) -> float:
    return sun_true_longitude(T) - 0.00569 - 0.00478 * math.sin(_omega(T) * DEG_TO_RAD)


def mean_obliquity(T: float) -> float:
    """Mean obliquity of the ecliptic (IAU 1980 polynomial), degrees."""
    seconds = 21.448 - T * (46.8150 + T * (0.00059 - T * 0.001813))
    return 23.0 + (26.0 + seconds / 60.0) / 60.0


def obliquity_correction(T: float) -> float:
    return mean_obliquity(T) + 0.00256 * math.cos(_omega(T) * DEG_TO_RAD)


def solar_declination(T: float) -> float:
    e = obliquity_correction(T) * DEG_TO_RAD
    lam = sun_apparent_longitude(T) * DEG_TO_RAD
    return math.asin(math.sin(e) * math.sin(lam)) * RAD_TO_DEG


def equation_of_time(T: float) -> float:
    """Apparent minus mean solar time, in minutes."""
    e = obliquity_correction(T) * DEG_TO_RAD
    l0 = sun_mean_longitude(T) * DEG_TO_RAD
    ecc = earth_orbit_eccentricity(T)
    m = sun_mean_anomaly(T) * DEG_TO_RAD

    y = math.tan(e / 2.0)
    y *= y

    etime = (y * math.sin(2 * l0)
             - 2 * ecc * math.sin(m)
             + 4 * ecc * y * math.sin(m) * math.cos(2 * l0)
             - 0.5 * y * y * math.sin(4 * l0)
             - 1.25 * ecc * ecc * math.sin(2 * m))
    return etime * RAD_TO_DEG * 4.0


# ───────────────────────────── hour angles ─────────────────────────────
def hour_angle(altitude: float, latitude: float, declination: float) -> Optional[float]:
    """
    |H| at which the sun stands at `altitude` (deg, negative below horizon).
    None when the sun never reaches that altitude (|cos H| > 1).
    """
    lat = latitude * DEG_TO_RAD
    dec = declination * DEG_TO_RAD
    alt = altitude * DEG_TO_RAD

    denom = math.cos(lat) * math.cos(dec)
    if denom == 0.0:
        return None
    cos_h = (math.sin(alt) - math.sin(lat) * math.sin(dec)) / denom
    if cos_h < -1.0 or cos_h > 1.0:
        return None
    return math.acos(cos_h) * RAD_TO_DEG


def asr_hour_angle(shadow_factor: float, latitude: float, declination: float) -> Optional[float]:
    """Hour angle when shadow = shadow_factor + noon shadow (object heights)."""
    target_cot = shadow_factor + abs(math.tan((latitude - declination) * DEG_TO_RAD))
    target_alt = math.atan(1.0 / target_cot) * RAD_TO_DEG
    return hour_angle(target_alt, latitude, declination)


def solar_noon(longitude: float, eot_minutes: float, timezone_hours: float) -> float:
    """Local clock time (decimal hours) of the sun's upper transit."""
    return 12.0 + timezone_hours - longitude / 15.0 - eot_minutes / 60.0


def sun_altitude(hour_angle_deg: float, latitude: float, declination: float) -> float:
    lat = latitude * DEG_TO_RAD
    dec = declination * DEG_TO_RAD
    ha = hour_angle_deg * DEG_TO_RAD
    s = math.sin(lat) * math.sin(dec) + math.cos(lat) * math.cos(dec) * math.cos(ha)
    return math.asin(max(-1.0, min(1.0, s))) * RAD_TO_DEG


# ───────────────────────────── bundle ─────────────────────────────
@dataclass(frozen=True)
class SolarPosition:
    jd: float
    T: float
    declination: float       # degrees
    equation_of_time: float  # minutes


def solar_position(d: Date) -> SolarPosition:
    jd = julian_day(d)
    T = julian_century(jd)
    return SolarPosition(jd=jd, T=T, declination=solar_declination(T), equation_of_time=equation_of_time(T))
