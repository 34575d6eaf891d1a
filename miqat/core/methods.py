# miqat/core/methods.py
"""
Calculation-method registry.

Ids follow the AlAdhan numbering (1..14, 99 = custom) so a method id can be
passed straight to the remote source. Never renumber.

The table and the regional fallback buckets are read-only mappings built once
at import time.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from miqat.core.countries import to_country_code
from miqat.core.models import AsrSchool, CalculationMethod

__all__ = [
    "KARACHI", "ISNA", "MWL", "UMM_AL_QURA", "EGYPT", "MAKKAH", "TEHRAN",
    "GULF", "KUWAIT", "QATAR", "SINGAPORE", "FRANCE", "DIYANET", "RUSSIA",
    "CUSTOM", "DEFAULT_METHOD_ID", "DEFAULT_ASR_SCHOOL",
    "CALCULATION_METHODS", "METHOD_ADJUSTMENTS",
    "get_method", "resolve_method", "method_name", "method_short_name",
    "method_angles", "methods_for_ui", "compare_method_angles",
]

KARACHI = 1
ISNA = 2
MWL = 3
UMM_AL_QURA = 4
EGYPT = 5
MAKKAH = 6
TEHRAN = 7
GULF = 8
KUWAIT = 9
QATAR = 10
SINGAPORE = 11
FRANCE = 12
DIYANET = 13
RUSSIA = 14
CUSTOM = 99

DEFAULT_METHOD_ID = DIYANET
# used when neither the caller nor the method picks an Asr school
DEFAULT_ASR_SCHOOL = AsrSchool.HANAFI


def _m(id: int, name: str, short: str, fajr: float, *, isha: Optional[float] = None,
       isha_minutes: Optional[float] = None, maghrib: Optional[float] = None,
       asr: Optional[AsrSchool] = None, countries=(), region: str = "") -> CalculationMethod:
    return CalculationMethod(
        id=id, name=name, short_name=short, fajr_angle=fajr,
        isha_angle=isha, isha_minutes=isha_minutes, maghrib_angle=maghrib,
        default_asr_school=asr, countries=frozenset(countries), region=region,
    )


CALCULATION_METHODS: Mapping[int, CalculationMethod] = MappingProxyType({
    m.id: m for m in (
        _m(KARACHI, "University of Islamic Sciences, Karachi", "Karachi", 18, isha=18,
           countries=("PK", "IN", "BD", "AF", "NP"), region="South Asia"),
        _m(ISNA, "Islamic Society of North America", "ISNA", 15, isha=15,
           countries=("US", "CA"), region="North America"),
        _m(MWL, "Muslim World League", "MWL", 18, isha=17,
           countries=("GB", "DE", "NL", "BE", "AT", "CH", "JO", "PS", "IQ", "SY", "LB", "YE"),
           region="Europe / Middle East"),
        # 120 minutes during Ramadan per the authority; not modelled here
        _m(UMM_AL_QURA, "Umm Al-Qura University, Makkah", "Umm Al-Qura", 18.5, isha_minutes=90,
           countries=("SA", "BH"), region="Arabian Peninsula"),
        _m(EGYPT, "Egyptian General Authority of Survey", "Egypt", 19.5, isha=17.5,
           countries=("EG", "LY", "SD", "SO", "DJ", "ER"), region="North/East Africa"),
        _m(MAKKAH, "Umm Al-Qura (Makkah)", "Makkah", 18.5, isha_minutes=90,
           region="Arabian Peninsula"),
        _m(TEHRAN, "Institute of Geophysics, University of Tehran", "Tehran", 17.7, isha=14,
           maghrib=4.5, countries=("IR",), region="Iran"),
        _m(GULF, "Gulf Region", "Gulf", 19.5, isha_minutes=90,
           countries=("OM",), region="Gulf States"),
        _m(KUWAIT, "Kuwait", "Kuwait", 18, isha=17.5, countries=("KW",), region="Kuwait"),
        _m(QATAR, "Qatar", "Qatar", 18, isha_minutes=90, countries=("QA",), region="Qatar"),
        _m(SINGAPORE, "Majlis Ugama Islam Singapura", "Singapore/MUIS", 20, isha=18,
           countries=("SG", "MY", "ID", "BN", "TH", "PH"), region="Southeast Asia"),
        _m(FRANCE, "Union Des Organisations Islamiques De France", "UOIF", 12, isha=12,
           countries=("FR",), region="France"),
        _m(DIYANET, "Presidency of Religious Affairs", "Diyanet", 18, isha=17,
           asr=AsrSchool.SHAFI, countries=("TR", "TRNC"), region="Turkey"),
        _m(RUSSIA, "Spiritual Administration of Muslims of Russia", "Russia/SAMR", 16, isha=15,
           countries=("RU", "KZ", "UZ", "AZ", "TM", "KG", "TJ"), region="Russia / Central Asia"),
        _m(CUSTOM, "Custom", "Custom", 18, isha=17, region="Custom"),
    )
})

# Calibration offsets (minutes) against published calendars. Empirical constants.
METHOD_ADJUSTMENTS: Mapping[int, Mapping[str, int]] = MappingProxyType({
    DIYANET: MappingProxyType({"fajr": 0, "sunrise": -7, "dhuhr": 5, "asr": 4, "maghrib": 7, "isha": 0}),
    UMM_AL_QURA: MappingProxyType({"fajr": 0, "sunrise": 0, "dhuhr": 4, "asr": 0, "maghrib": 4, "isha": 0}),
    ISNA: MappingProxyType({"fajr": 0, "sunrise": 0, "dhuhr": 0, "asr": 0, "maghrib": 0, "isha": 0}),
    MWL: MappingProxyType({"fajr": 0, "sunrise": 0, "dhuhr": 2, "asr": 0, "maghrib": 2, "isha": 0}),
})

# Regional buckets, consulted only after exact membership fails (order matters).
_REGIONAL_FALLBACKS = (
    (frozenset(("IT", "ES", "PT", "GR", "PL", "RO", "HU", "CZ", "SK", "BG",
                "HR", "RS", "BA", "SI", "AL", "XK", "MK", "ME")), MWL),
    (frozenset(("MA", "DZ", "TN", "NG", "SN", "ML", "NE", "TD", "ET", "KE",
                "TZ", "UG", "ZA")), EGYPT),
    (frozenset(("AE", "OM", "YE")), UMM_AL_QURA),
)


def get_method(method_id: Optional[int]) -> CalculationMethod:
    """Method by id; unknown ids fall back to Diyanet rather than erroring."""
    return CALCULATION_METHODS.get(method_id, CALCULATION_METHODS[DEFAULT_METHOD_ID])


def resolve_method(country: Optional[str]) -> int:
    """Method for an ISO code or any known country alias ("Germany", "DEU")."""
    code = to_country_code(country)
    if code is None:
        return DEFAULT_METHOD_ID

    for method_id in sorted(CALCULATION_METHODS):
        if code in CALCULATION_METHODS[method_id].countries:
            return method_id

    for bucket, method_id in _REGIONAL_FALLBACKS:
        if code in bucket:
            return method_id
    return DEFAULT_METHOD_ID


def method_name(method_id: int) -> str:
    m = CALCULATION_METHODS.get(method_id)
    return m.name if m else "Unknown Method"


def method_short_name(method_id: int) -> str:
    m = CALCULATION_METHODS.get(method_id)
    return m.short_name if m else "Unknown"


def method_angles(method_id: int) -> Optional[Dict[str, Optional[float]]]:
    m = CALCULATION_METHODS.get(method_id)
    if m is None:
        return None
    return {"fajr": m.fajr_angle, "isha": m.isha_angle,
            "isha_minutes": m.isha_minutes, "maghrib": m.maghrib_angle}


def methods_for_ui() -> List[Dict[str, Any]]:
    return [
        {"id": m.id, "name": m.name, "short_name": m.short_name, "region": m.region}
        for m in sorted(CALCULATION_METHODS.values(), key=lambda m: m.id)
        if m.id != CUSTOM
    ]


def compare_method_angles(first: int, second: int) -> Optional[Dict[str, Any]]:
    m1, m2 = CALCULATION_METHODS.get(first), CALCULATION_METHODS.get(second)
    if m1 is None or m2 is None:
        return None
    f1, f2 = m1.fajr_angle or 0, m2.fajr_angle or 0
    i1, i2 = m1.isha_angle or 0, m2.isha_angle or 0
    return {
        "method1": m1.short_name,
        "method2": m2.short_name,
        "fajr_diff": f1 - f2,
        "isha_diff": i1 - i2,
        "notes": {
            "fajr": f"{m1.short_name if f1 > f2 else m2.short_name} earlier Fajr",
            "isha": f"{m1.short_name if i1 > i2 else m2.short_name} later Isha",
        },
    }
