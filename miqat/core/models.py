# miqat/core/models.py
"""
Data model definitions: explicit boundaries between input, compute, validation
and orchestration layers.

Every value here is computed fresh per request; nothing is persisted.
A prayer time is decimal hours (local clock, not wrapped to 0..24) or None,
where None means "no sun crossing" and is never an error.
"""
from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from datetime import date as Date
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from miqat.core.constants import PRAYERS, UNAVAILABLE, round_half_up
from miqat.core.errors import ValidationError

__all__ = [
    "AsrSchool", "HighLatitudeMethod", "TimeFormat",
    "ValidationStatus", "SafetyFlag",
    "GeoPoint", "is_finite_number", "CalculationMethod", "PrayerTimeSet",
    "Discrepancy", "ValidationResult", "OrchestrationResult",
    "format_time",
]


# ───────────────────────────── enums ─────────────────────────────
class AsrSchool(str, enum.Enum):
    SHAFI = "shafi"
    HANAFI = "hanafi"

    @property
    def shadow_factor(self) -> int:
        return 2 if self is AsrSchool.HANAFI else 1


class HighLatitudeMethod(str, enum.Enum):
    NONE = "none"
    MIDDLE_OF_NIGHT = "middleOfNight"
    ONE_SEVENTH = "oneSeventh"
    ANGLE_BASED = "angleBased"


class TimeFormat(str, enum.Enum):
    H24 = "24h"
    H12 = "12h"
    FLOAT = "float"


class ValidationStatus(str, enum.Enum):
    VALID = "VALID"
    WARNING = "WARNING"
    FALLBACK_CRITICAL = "FALLBACK_CRITICAL"
    FALLBACK_ERROR = "FALLBACK_ERROR"


class SafetyFlag(str, enum.Enum):
    LOW_PRECISION = "LOW_PRECISION"


# ───────────────────────────── formatting ─────────────────────────────
def format_time(hours: Optional[float], fmt: TimeFormat = TimeFormat.H24) -> str:
    """Decimal hours → display string. None/non-finite → '--:--'."""
    if hours is None or not math.isfinite(hours):
        return UNAVAILABLE
    if fmt is TimeFormat.FLOAT:
        return f"{hours:.4f}"

    hours = hours % 24.0
    h = int(math.floor(hours))
    m = round_half_up((hours - h) * 60.0)
    if m >= 60:
        m -= 60
        h += 1
    h %= 24

    if fmt is TimeFormat.H12:
        period = "PM" if h >= 12 else "AM"
        return f"{h % 12 or 12}:{m:02d} {period}"
    return f"{h:02d}:{m:02d}"


# ───────────────────────────── values ─────────────────────────────
def is_finite_number(x: Any) -> bool:
    """Real, finite int or float; bools are not coordinates."""
    return isinstance(x, (int, float)) and not isinstance(x, bool) and math.isfinite(x)


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        lat, lon = self.latitude, self.longitude
        if not is_finite_number(lat):
            raise ValidationError({"loc": ["latitude"], "msg": "latitude must be a finite number", "type": "type_error.float"})
        if not is_finite_number(lon):
            raise ValidationError({"loc": ["longitude"], "msg": "longitude must be a finite number", "type": "type_error.float"})
        if not (-90.0 <= lat <= 90.0):
            raise ValidationError({"loc": ["latitude"], "msg": "latitude must be between -90 and 90", "type": "value_error"})
        if not (-180.0 <= lon <= 180.0):
            raise ValidationError({"loc": ["longitude"], "msg": "longitude must be between -180 and 180", "type": "value_error"})

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class CalculationMethod:
    id: int
    name: str
    short_name: str
    fajr_angle: Optional[float]
    isha_angle: Optional[float] = None
    isha_minutes: Optional[float] = None
    maghrib_angle: Optional[float] = None
    default_asr_school: Optional[AsrSchool] = None
    countries: FrozenSet[str] = frozenset()
    region: str = ""


@dataclass(frozen=True)
class PrayerTimeSet:
    fajr: Optional[float]
    sunrise: Optional[float]
    dhuhr: Optional[float]
    asr: Optional[float]
    maghrib: Optional[float]
    isha: Optional[float]
    date: Date
    method_id: int
    asr_school: Optional[AsrSchool]
    location: GeoPoint
    timezone_offset_hours: Optional[float]
    provenance: str

    def times(self) -> Dict[str, Optional[float]]:
        return {p: getattr(self, p) for p in PRAYERS}

    def minutes(self, prayer: str) -> Optional[int]:
        """Whole minutes past local midnight (0..1439), as the clock shows it."""
        v = getattr(self, prayer)
        if v is None:
            return None
        return round_half_up(v * 60.0) % 1440

    def formatted(self, fmt: TimeFormat = TimeFormat.H24) -> Dict[str, str]:
        return {p: format_time(v, fmt) for p, v in self.times().items()}

    def to_dict(self, fmt: TimeFormat = TimeFormat.H24) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.formatted(fmt))
        out.update({
            "date": self.date.isoformat(),
            "method_id": self.method_id,
            "asr_school": self.asr_school.value if self.asr_school else None,
            "location": {**self.location.to_dict(), "timezone": self.timezone_offset_hours},
            "source": self.provenance,
            "raw": self.times(),
        })
        return out


@dataclass(frozen=True)
class Discrepancy:
    prayer: str
    deviation: Optional[int]   # signed minutes, None if one side is unavailable
    primary: str
    reference: str

    def to_dict(self) -> Dict[str, Any]:
        return {"prayer": self.prayer, "diff": self.deviation,
                "primary": self.primary, "reference": self.reference}


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    deviations: Mapping[str, Optional[int]]
    max_abs_deviation: int
    tolerance_minutes: float
    discrepancies: Tuple[Discrepancy, ...] = ()
    primary_source: str = "Unknown"
    reference_source: str = "Reference"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "deviations": dict(self.deviations),
            "max_abs_deviation": self.max_abs_deviation,
            "tolerance_minutes": self.tolerance_minutes,
            "discrepancies": [d.to_dict() for d in self.discrepancies],
            "primary_source": self.primary_source,
            "reference_source": self.reference_source,
        }


@dataclass(frozen=True)
class OrchestrationResult:
    """
    A recommended PrayerTimeSet plus provenance.

    status is None only when the caller forced the reference path
    (nothing was validated).
    """
    times: PrayerTimeSet
    status: Optional[ValidationStatus]
    source: str                                   # "PRIMARY" | "REFERENCE"
    reason: Optional[str] = None
    discrepancies: Tuple[Discrepancy, ...] = ()
    tolerance_used: Optional[float] = None
    safety_flag: Optional[SafetyFlag] = None
    accuracy_m: Optional[float] = None
    validation: Optional[ValidationResult] = field(default=None, compare=False)

    def to_dict(self, fmt: TimeFormat = TimeFormat.H24) -> Dict[str, Any]:
        out = self.times.to_dict(fmt)
        out["validation"] = {
            "status": self.status.value if self.status else None,
            "source": self.source,
            "reason": self.reason,
            "tolerance_used": self.tolerance_used,
            "details": [d.to_dict() for d in self.discrepancies],
        }
        out["meta"] = {
            "safety": self.safety_flag.value if self.safety_flag else None,
            "accuracy": self.accuracy_m,
        }
        return out
