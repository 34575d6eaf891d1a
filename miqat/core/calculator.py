# miqat/core/calculator.py
"""
Prayer-time calculator.

compute_times(date, lat, lon, config) runs, in order:
  1. solar position for the date (declination, equation of time)
  2. solar noon in local clock hours
  3. sunrise/sunset at -0.833°
  4. dhuhr = noon + 1 min
  5. fajr from the method's Fajr angle
  6. asr from the shadow factor of the effective school
  7. maghrib = sunset, or the method's Maghrib angle (Tehran)
  8. isha from the Isha angle, or maghrib + fixed minutes
  9. high-latitude fill for unavailable fajr/isha when |lat| >= threshold
 10. method calibration offsets, then manual offsets (minutes)

Values are decimal hours on the local clock and are not wrapped into 0..24;
formatting does that. None means no sun crossing.
"""
from __future__ import annotations

import calendar
import logging
import os
from dataclasses import dataclass, field
from datetime import date as Date, datetime, time as Time, timedelta
from typing import Dict, List, Mapping, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from miqat.core import astronomy as astro
from miqat.core import high_latitude as hl
from miqat.core import methods as mreg
from miqat.core.constants import PRAYERS, SUN_RISE_SET_ANGLE, round_half_up
from miqat.core.errors import ValidationError
from miqat.core.models import (
    AsrSchool, CalculationMethod, GeoPoint, HighLatitudeMethod,
    PrayerTimeSet, TimeFormat, format_time,
)

log = logging.getLogger(__name__)

__all__ = [
    "CalculationConfig",
    "NextPrayer",
    "compute_times",
    "compute_range",
    "compute_month",
    "next_prayer",
    "estimate_timezone",
    "resolve_timezone",
    "PROVENANCE",
]

PROVENANCE = "Internal Calculation"


# ───────────────────────────── config ─────────────────────────────
def _int_env(name: str, default: int) -> int:
    v = os.getenv(name, "").strip()
    try:
        return int(v) if v else default
    except ValueError:
        log.warning("ignoring non-integer %s=%r", name, v)
        return default


def _float_env(name: str, default: float) -> float:
    v = os.getenv(name, "").strip()
    try:
        return float(v) if v else default
    except ValueError:
        log.warning("ignoring non-numeric %s=%r", name, v)
        return default


@dataclass(frozen=True)
class _CalcCfg:
    default_method_id: int
    high_latitude_threshold: float


CFG = _CalcCfg(
    default_method_id=_int_env("MIQAT_DEFAULT_METHOD", mreg.DEFAULT_METHOD_ID),
    high_latitude_threshold=_float_env("MIQAT_HIGH_LAT_THRESHOLD", hl.DEFAULT_THRESHOLD),
)


@dataclass(frozen=True)
class CalculationConfig:
    method_id: int = CFG.default_method_id
    asr_school: AsrSchool = mreg.DEFAULT_ASR_SCHOOL
    high_latitude_method: HighLatitudeMethod = HighLatitudeMethod.ANGLE_BASED
    high_latitude_threshold: float = CFG.high_latitude_threshold
    # hours east of UTC, an IANA zone name, or None to estimate from longitude
    timezone: Union[float, str, None] = None
    apply_method_adjustments: bool = True
    adjustments: Mapping[str, float] = field(default_factory=dict)
    time_format: TimeFormat = TimeFormat.H24


# ───────────────────────────── timezone ─────────────────────────────
def estimate_timezone(longitude: float) -> int:
    return round_half_up(longitude / 15.0)


def resolve_timezone(tz: Union[float, str, None], d: Date, longitude: float) -> float:
    """UTC offset in hours for date `d`. IANA zones are evaluated at local noon."""
    if tz is None:
        return float(estimate_timezone(longitude))
    if isinstance(tz, str):
        try:
            zone = ZoneInfo(tz)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValidationError({"loc": ["timezone"], "msg": f"unknown timezone '{tz}'", "type": "value_error"}) from e
        offset = datetime.combine(d, Time(12, 0), tzinfo=zone).utcoffset()
        return offset.total_seconds() / 3600.0 if offset is not None else 0.0
    return float(tz)


# ───────────────────────────── core ─────────────────────────────
def _from_noon(noon: float, ha: Optional[float], sign: int) -> Optional[float]:
    return None if ha is None else noon + sign * ha / 15.0


def _apply_offsets(times: Dict[str, Optional[float]], offsets: Mapping[str, float]) -> None:
    for prayer, minutes in offsets.items():
        if prayer not in times:
            raise ValidationError({"loc": ["adjustments", prayer], "msg": f"unknown prayer '{prayer}'", "type": "value_error"})
        if times[prayer] is not None and minutes:
            times[prayer] += minutes / 60.0


def compute_times(d: Date, latitude: float, longitude: float,
                  config: Optional[CalculationConfig] = None) -> PrayerTimeSet:
    cfg = config or CalculationConfig()
    location = GeoPoint(latitude, longitude)  # raises before any trig

    method: CalculationMethod = mreg.get_method(cfg.method_id)
    if method.id != cfg.method_id:
        log.debug("unknown method id %r, using %s", cfg.method_id, method.short_name)
    tz = resolve_timezone(cfg.timezone, d, longitude)

    sun = astro.solar_position(d)
    dec = sun.declination
    noon = astro.solar_noon(longitude, sun.equation_of_time, tz)

    horizon = astro.hour_angle(-SUN_RISE_SET_ANGLE, latitude, dec)
    sunrise = _from_noon(noon, horizon, -1)
    sunset = _from_noon(noon, horizon, +1)

    school = method.default_asr_school or cfg.asr_school
    times: Dict[str, Optional[float]] = {
        "fajr": _from_noon(noon, astro.hour_angle(-method.fajr_angle, latitude, dec), -1),
        "sunrise": sunrise,
        "dhuhr": noon + 1.0 / 60.0,
        "asr": _from_noon(noon, astro.asr_hour_angle(school.shadow_factor, latitude, dec), +1),
    }

    if method.maghrib_angle:
        times["maghrib"] = _from_noon(noon, astro.hour_angle(-method.maghrib_angle, latitude, dec), +1)
    else:
        times["maghrib"] = sunset

    if method.isha_minutes:
        m = times["maghrib"]
        times["isha"] = None if m is None else m + method.isha_minutes / 60.0
    else:
        times["isha"] = _from_noon(noon, astro.hour_angle(-method.isha_angle, latitude, dec), +1)

    if hl.requires_adjustment(latitude, cfg.high_latitude_threshold):
        policy = cfg.high_latitude_method
        times["fajr"] = hl.adjust_fajr(times["fajr"], sunrise, sunset, method.fajr_angle, policy)
        times["isha"] = hl.adjust_isha(times["isha"], sunrise, sunset, method.isha_angle, policy)

    if cfg.apply_method_adjustments and method.id in mreg.METHOD_ADJUSTMENTS:
        _apply_offsets(times, mreg.METHOD_ADJUSTMENTS[method.id])
    if cfg.adjustments:
        _apply_offsets(times, cfg.adjustments)

    return PrayerTimeSet(
        **{p: times[p] for p in PRAYERS},
        date=d,
        method_id=method.id,
        asr_school=school,
        location=location,
        timezone_offset_hours=tz,
        provenance=PROVENANCE,
    )


def compute_range(start: Date, end: Date, latitude: float, longitude: float,
                  config: Optional[CalculationConfig] = None) -> List[PrayerTimeSet]:
    """Inclusive day range; empty when end < start."""
    if end < start:
        return []
    return [compute_times(start + timedelta(days=i), latitude, longitude, config)
            for i in range((end - start).days + 1)]


def compute_month(year: int, month: int, latitude: float, longitude: float,
                  config: Optional[CalculationConfig] = None) -> List[PrayerTimeSet]:
    if not (1 <= month <= 12):
        raise ValidationError({"loc": ["month"], "msg": "month must be between 1 and 12", "type": "value_error"})
    last_day = calendar.monthrange(year, month)[1]
    return compute_range(Date(year, month, 1), Date(year, month, last_day), latitude, longitude, config)


# ───────────────────────────── next prayer ─────────────────────────────
@dataclass(frozen=True)
class NextPrayer:
    name: str
    time: str
    remaining_minutes: Optional[int]
    remaining_formatted: str
    next_day: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "time": self.time,
            "remaining_minutes": self.remaining_minutes,
            "remaining_formatted": self.remaining_formatted,
            "next_day": self.next_day,
        }


def next_prayer(now: datetime, times: PrayerTimeSet,
                fmt: TimeFormat = TimeFormat.H24) -> NextPrayer:
    """First prayer later than `now` (local wall clock); after isha, tomorrow's fajr."""
    current = now.hour + now.minute / 60.0 + now.second / 3600.0
    for prayer in PRAYERS:
        raw = getattr(times, prayer)
        if raw is not None and raw > current:
            remaining = int((raw - current) * 60.0)
            return NextPrayer(
                name=prayer,
                time=format_time(raw, fmt),
                remaining_minutes=remaining,
                remaining_formatted=f"{remaining // 60}h {remaining % 60}m",
            )
    return NextPrayer(
        name="fajr",
        time=format_time(times.fajr, fmt),
        remaining_minutes=None,
        remaining_formatted="Tomorrow",
        next_day=True,
    )
