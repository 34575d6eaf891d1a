# tests/test_crosscheck.py
from __future__ import annotations

from datetime import date

import pytest

from miqat.core.crosscheck import (
    PRIMARY,
    REFERENCE,
    CrossCheckValidator,
    is_turkey,
    minute_deviation,
)
from miqat.core.models import AsrSchool, GeoPoint, PrayerTimeSet, ValidationStatus

BASE = dict(fajr=4.0, sunrise=5.5, dhuhr=13.0, asr=16.5, maghrib=20.0, isha=21.5)


def _set(provenance: str, lat: float = 40.7128, lon: float = -74.0060, **shift_min) -> PrayerTimeSet:
    values = dict(BASE)
    for prayer, m in shift_min.items():
        values[prayer] = None if m is None else values[prayer] + m / 60.0
    return PrayerTimeSet(
        **values,
        date=date(2024, 6, 21),
        method_id=2,
        asr_school=AsrSchool.SHAFI,
        location=GeoPoint(lat, lon),
        timezone_offset_hours=-4.0,
        provenance=provenance,
    )


def test_turkey_box():
    assert is_turkey(41.0, 28.9)
    assert is_turkey(39.9, 32.8)
    assert not is_turkey(40.7, -74.0)
    assert not is_turkey(35.0, 33.0)   # Cyprus, south of the box


def test_tolerance_by_region():
    v = CrossCheckValidator()
    assert v.tolerance_for(41.0, 28.9) == 1
    assert v.tolerance_for(40.7, -74.0) == 2


@pytest.mark.parametrize("a,b,expected", [(0, 1439, 1), (1439, 0, -1), (600, 590, 10), (5, 725, -720)])
def test_minute_deviation_wraps_midnight(a, b, expected):
    assert minute_deviation(a, b) == expected


def test_identical_sets_are_valid():
    v = CrossCheckValidator()
    res = v.validate(_set("Remote"), _set("Internal"))
    assert res.is_valid
    assert res.max_abs_deviation == 0
    assert all(d == 0 for d in res.deviations.values())
    assert res.primary_source == "Remote"
    assert res.reference_source == "Internal"

    rec = v.recommend(res, _set("Remote"), _set("Internal"))
    assert rec.status is ValidationStatus.VALID
    assert rec.source == PRIMARY
    assert rec.tolerance_used == 2
    assert rec.discrepancies == ()


def test_within_tolerance_is_valid():
    res = CrossCheckValidator().validate(_set("Remote", fajr=2), _set("Internal"))
    assert res.is_valid
    assert res.deviations["fajr"] == 2


def test_midnight_crossing_is_small():
    to_midnight = (24.0 - BASE["isha"]) * 60
    primary = _set("Remote", isha=to_midnight + 3)      # 00:03 next day
    reference = _set("Internal", isha=to_midnight - 1)  # 23:59
    res = CrossCheckValidator().validate(primary, reference)
    assert res.deviations["isha"] == 4
    assert res.max_abs_deviation == 4


def test_both_unavailable_is_agreement():
    res = CrossCheckValidator().validate(_set("Remote", isha=None), _set("Internal", isha=None))
    assert res.is_valid
    assert res.deviations["isha"] is None


def test_one_side_unavailable_is_discrepancy():
    res = CrossCheckValidator().validate(_set("Remote", fajr=None), _set("Internal"))
    assert not res.is_valid
    (d,) = res.discrepancies
    assert d.prayer == "fajr"
    assert d.deviation is None
    assert d.primary == "--:--"
    assert d.reference == "04:00"


def test_minor_exceedance_keeps_primary_with_warning():
    v = CrossCheckValidator()
    primary, reference = _set("Remote", dhuhr=5), _set("Internal")
    res = v.validate(primary, reference)
    rec = v.recommend(res, primary, reference)
    # still served from the primary, only flagged
    assert rec.status is ValidationStatus.WARNING
    assert rec.source == PRIMARY
    assert rec.times is primary
    assert rec.reason == "Tolerance exceeded (5m > 2m)"
    assert [d.prayer for d in rec.discrepancies] == ["dhuhr"]


def test_critical_deviation_switches_to_reference():
    v = CrossCheckValidator()
    primary, reference = _set("Remote", maghrib=-20, isha=3), _set("Internal")
    res = v.validate(primary, reference)
    rec = v.recommend(res, primary, reference)
    assert rec.status is ValidationStatus.FALLBACK_CRITICAL
    assert rec.source == REFERENCE
    assert rec.times is reference
    assert rec.reason == "Critical deviation > 15m"
    assert {d.prayer for d in rec.discrepancies} == {"maghrib", "isha"}
    assert res.max_abs_deviation == 20


def test_strict_tolerance_in_turkey():
    v = CrossCheckValidator()
    primary = _set("Remote", lat=41.0, lon=28.9, asr=2)
    reference = _set("Internal", lat=41.0, lon=28.9)
    res = v.validate(primary, reference)
    assert not res.is_valid
    assert res.tolerance_minutes == 1


def test_custom_thresholds():
    v = CrossCheckValidator(default_tolerance=5, critical_threshold=4)
    primary, reference = _set("Remote", fajr=6), _set("Internal")
    rec = v.recommend(v.validate(primary, reference), primary, reference)
    assert rec.status is ValidationStatus.FALLBACK_CRITICAL
    assert rec.reason == "Critical deviation > 4m"
