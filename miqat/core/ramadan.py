# miqat/core/ramadan.py
"""
Ramadan calendar from announced (or pre-computed) start and end dates.

Dates are static data per Hijri year and country; a year's "DEFAULT" row
covers every country without its own entry. Nothing here predicts moon
sightings.

    is_ramadan(date(2026, 2, 20), "Turkey")   -> True
    ramadan_day(date(2026, 3, 10), "TR")      -> 20
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date as Date, timedelta
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from miqat.core.authorities import authority_by_code
from miqat.core.countries import to_country_code

__all__ = [
    "RamadanPeriod",
    "RamadanDay",
    "RAMADAN_DATES",
    "DEFAULT_DURATION",
    "ramadan_dates_for_country",
    "ramadan_start_date",
    "ramadan_end_date",
    "ramadan_duration",
    "is_ramadan",
    "ramadan_day",
    "ramadan_calendar",
    "compare_ramadan_start_dates",
]

DEFAULT = "DEFAULT"
DEFAULT_DURATION = 30

_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class RamadanPeriod:
    start: Date
    end: Date              # last fasting day
    duration: int
    source: str            # official | astronomical | estimated
    announced_at: Optional[Date] = None
    notes: str = ""

    def contains(self, d: Date) -> bool:
        return self.start <= d <= self.end

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration": self.duration,
            "source": self.source,
            "announced_at": self.announced_at.isoformat() if self.announced_at else None,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class RamadanDay:
    day: int
    date: Date

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day,
            "date": self.date.isoformat(),
            "weekday": _WEEKDAYS[self.date.weekday()],
            "weekday_short": _WEEKDAYS[self.date.weekday()][:3],
        }


def _p(start: str, end: str, duration: int, source: str, notes: str = "",
       announced_at: Optional[str] = None) -> RamadanPeriod:
    return RamadanPeriod(
        start=Date.fromisoformat(start),
        end=Date.fromisoformat(end),
        duration=duration,
        source=source,
        announced_at=Date.fromisoformat(announced_at) if announced_at else None,
        notes=notes,
    )


_SAUDI_1447 = ("2026-02-18", "2026-03-19", 30)
_LATER_1447 = ("2026-02-19", "2026-03-20", 30)

RAMADAN_DATES: Mapping[int, Mapping[str, RamadanPeriod]] = MappingProxyType({
    1446: MappingProxyType({
        "TR": _p("2025-03-01", "2025-03-29", 29, "official", "Diyanet calendar", announced_at="2024-12-01"),
        "SA": _p("2025-02-28", "2025-03-29", 30, "official", "Umm Al-Qura calendar"),
        DEFAULT: _p("2025-02-28", "2025-03-29", 30, "astronomical", "Astronomical calculation"),
    }),
    1447: MappingProxyType({
        "TR": _p(*_LATER_1447, "official", "Diyanet calculation; first sahur the night of Feb 18."),
        "SA": _p(*_SAUDI_1447, "astronomical", "Umm Al-Qura calendar; may change with moon sighting."),
        "PK": _p(*_LATER_1447, "estimated", "Usually one day after Saudi Arabia."),
        "IN": _p(*_LATER_1447, "estimated", "May vary between regions."),
        "BD": _p(*_LATER_1447, "estimated", "Usually the same day as Pakistan."),
        "ID": _p(*_LATER_1447, "estimated", "Pending the Kemenag announcement."),
        "MY": _p(*_SAUDI_1447, "estimated", "Same as Singapore and Brunei."),
        "US": _p(*_SAUDI_1447, "astronomical", "ISNA calculation."),
        "CA": _p(*_SAUDI_1447, "astronomical", "Same as the United States."),
        "GB": _p(*_SAUDI_1447, "astronomical", "Pending the MCB announcement."),
        "DE": _p(*_SAUDI_1447, "astronomical", "ZMD or DITIB announcement."),
        "FR": _p(*_SAUDI_1447, "astronomical", "UOIF calendar."),
        "EG": _p(*_SAUDI_1447, "estimated", "Dar al-Ifta moon sighting."),
        "QA": _p(*_SAUDI_1447, "astronomical", "Same as Saudi Arabia."),
        "AE": _p(*_SAUDI_1447, "astronomical", "Same as Saudi Arabia."),
        DEFAULT: _p(*_SAUDI_1447, "astronomical", "Local authorities may announce differently."),
    }),
    1448: MappingProxyType({
        DEFAULT: _p("2027-02-07", "2027-03-08", 30, "estimated", "Astronomical prediction."),
    }),
})


def _code(country: Any) -> str:
    return to_country_code(country) or DEFAULT


def _period_in(year_rows: Mapping[str, RamadanPeriod], code: str) -> Optional[RamadanPeriod]:
    return year_rows.get(code) or year_rows.get(DEFAULT)


def ramadan_dates_for_country(hijri_year: int, country: Any = None) -> Optional[RamadanPeriod]:
    """Country row, else the year's default row; None for years without data."""
    rows = RAMADAN_DATES.get(hijri_year)
    if rows is None:
        return None
    return _period_in(rows, _code(country))


def ramadan_start_date(hijri_year: int, country: Any = None) -> Optional[Date]:
    period = ramadan_dates_for_country(hijri_year, country)
    return period.start if period else None


def ramadan_end_date(hijri_year: int, country: Any = None) -> Optional[Date]:
    period = ramadan_dates_for_country(hijri_year, country)
    return period.end if period else None


def ramadan_duration(hijri_year: int, country: Any = None) -> int:
    period = ramadan_dates_for_country(hijri_year, country)
    return period.duration if period else DEFAULT_DURATION


def _period_for_date(d: Date, country: Any) -> Optional[RamadanPeriod]:
    code = _code(country)
    for rows in RAMADAN_DATES.values():
        period = _period_in(rows, code)
        if period is not None and period.contains(d):
            return period
    return None


def is_ramadan(d: Date, country: Any = None) -> bool:
    return _period_for_date(d, country) is not None


def ramadan_day(d: Date, country: Any = None) -> Optional[int]:
    """1-based day of Ramadan, or None outside it."""
    period = _period_for_date(d, country)
    if period is None:
        return None
    return (d - period.start).days + 1


def ramadan_calendar(hijri_year: int, country: Any = None) -> List[RamadanDay]:
    period = ramadan_dates_for_country(hijri_year, country)
    if period is None:
        return []
    return [RamadanDay(day=i + 1, date=period.start + timedelta(days=i)) for i in range(period.duration)]


def compare_ramadan_start_dates(hijri_year: int) -> List[Dict[str, Any]]:
    """Every country with its own row for the year, earliest start first."""
    rows = RAMADAN_DATES.get(hijri_year)
    if rows is None:
        return []
    out = []
    for code, period in rows.items():
        if code == DEFAULT:
            continue
        auth = authority_by_code(code)
        out.append({
            "country_code": code,
            "country_name": auth.name if auth else code,
            "start_date": period.start.isoformat(),
            "source": period.source,
            "authority": auth.authority_short if auth else "Unknown",
        })
    # stable: ties keep table order
    out.sort(key=lambda row: row["start_date"])
    return out
