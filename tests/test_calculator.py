# tests/test_calculator.py
from __future__ import annotations

import math
from datetime import date, datetime

import pytest
from hypothesis import given, strategies as st

from miqat.core import methods as mreg
from miqat.core.calculator import (
    CalculationConfig,
    compute_month,
    compute_range,
    compute_times,
    estimate_timezone,
    next_prayer,
    resolve_timezone,
)
from miqat.core.constants import PRAYERS
from miqat.core.errors import ValidationError
from miqat.core.models import AsrSchool, GeoPoint, PrayerTimeSet, TimeFormat, format_time

ISTANBUL = (41.0082, 28.9784)
SUMMER = date(2024, 6, 21)


def _minutes(h: float) -> float:
    return h * 60.0


# ───────────────────────── ordering ─────────────────────────

@given(
    st.dates(min_value=date(2000, 1, 1), max_value=date(2030, 12, 31)),
    st.floats(min_value=-47.0, max_value=47.0),
    st.floats(min_value=-180.0, max_value=180.0),
)
def test_times_are_strictly_ordered_below_threshold(d, lat, lon):
    t = compute_times(d, lat, lon, CalculationConfig(method_id=mreg.DIYANET))
    values = [getattr(t, p) for p in PRAYERS]
    assert all(v is not None for v in values)
    assert values == sorted(values)
    assert len(set(values)) == len(values)


def test_istanbul_summer_is_plausible():
    t = compute_times(SUMMER, *ISTANBUL, CalculationConfig(method_id=mreg.DIYANET, timezone="Europe/Istanbul"))
    assert t.timezone_offset_hours == 3.0
    f = t.formatted()
    assert "03:00" < f["fajr"] < "03:45"
    assert "05:15" < f["sunrise"] < "05:45"
    assert "13:00" < f["dhuhr"] < "13:20"
    assert "20:25" < f["maghrib"] < "20:55"
    assert t.provenance == "Internal Calculation"
    assert t.method_id == mreg.DIYANET


# ───────────────────────── asr school ─────────────────────────

def test_hanafi_asr_later_than_shafi():
    shafi = compute_times(SUMMER, *ISTANBUL, CalculationConfig(method_id=mreg.MWL, asr_school=AsrSchool.SHAFI))
    hanafi = compute_times(SUMMER, *ISTANBUL, CalculationConfig(method_id=mreg.MWL, asr_school=AsrSchool.HANAFI))
    assert hanafi.asr > shafi.asr
    assert hanafi.asr_school is AsrSchool.HANAFI
    assert shafi.dhuhr == hanafi.dhuhr


def test_method_default_school_overrides_config():
    a = compute_times(SUMMER, *ISTANBUL, CalculationConfig(method_id=mreg.DIYANET, asr_school=AsrSchool.HANAFI))
    b = compute_times(SUMMER, *ISTANBUL, CalculationConfig(method_id=mreg.DIYANET, asr_school=AsrSchool.SHAFI))
    assert a.asr == b.asr
    assert a.asr_school is AsrSchool.SHAFI


# ───────────────────────── offsets ─────────────────────────

def test_manual_adjustment_shifts_exactly():
    base = compute_times(SUMMER, *ISTANBUL, CalculationConfig())
    moved = compute_times(SUMMER, *ISTANBUL, CalculationConfig(adjustments={"fajr": 5, "isha": -3}))
    assert _minutes(moved.fajr - base.fajr) == pytest.approx(5.0)
    assert _minutes(moved.isha - base.isha) == pytest.approx(-3.0)
    assert moved.dhuhr == base.dhuhr


def test_method_adjustments_toggle():
    on = compute_times(SUMMER, *ISTANBUL, CalculationConfig(method_id=mreg.DIYANET))
    off = compute_times(SUMMER, *ISTANBUL, CalculationConfig(method_id=mreg.DIYANET, apply_method_adjustments=False))
    assert _minutes(on.dhuhr - off.dhuhr) == pytest.approx(5.0)
    assert _minutes(on.sunrise - off.sunrise) == pytest.approx(-7.0)
    assert on.fajr == off.fajr


def test_dhuhr_is_one_minute_after_transit():
    t = compute_times(date(2024, 3, 20), 0.0, 0.0,
                      CalculationConfig(method_id=mreg.ISNA, timezone=0.0))
    # |EoT| is ~7.5 min on this date
    assert 12.0 < t.dhuhr < 12.0 + 10.0 / 60.0


def test_unknown_prayer_adjustment_rejected():
    with pytest.raises(ValidationError):
        compute_times(SUMMER, *ISTANBUL, CalculationConfig(adjustments={"tahajjud": 5}))


# ───────────────────────── method specifics ─────────────────────────

def test_fixed_minutes_isha():
    t = compute_times(SUMMER, 21.4225, 39.8262,
                      CalculationConfig(method_id=mreg.UMM_AL_QURA, apply_method_adjustments=False))
    assert _minutes(t.isha - t.maghrib) == pytest.approx(90.0)


def test_tehran_maghrib_after_sunset():
    t = compute_times(SUMMER, 35.6892, 51.3890, CalculationConfig(method_id=mreg.TEHRAN))
    sunset_based = compute_times(SUMMER, 35.6892, 51.3890, CalculationConfig(method_id=mreg.ISNA))
    assert t.maghrib > sunset_based.maghrib


def test_unknown_method_falls_back_to_default():
    t = compute_times(SUMMER, *ISTANBUL, CalculationConfig(method_id=999))
    assert t.method_id == mreg.DIYANET


# ───────────────────────── validation ─────────────────────────

@pytest.mark.parametrize("lat,lon", [(91.0, 0.0), (-90.5, 0.0), (0.0, 181.0), (math.nan, 0.0), (0.0, math.inf),
                                     (True, 0.0), (0.0, False)])
def test_bad_coordinates_raise(lat, lon):
    with pytest.raises(ValidationError) as ei:
        compute_times(SUMMER, lat, lon)
    assert ei.value.errors()[0]["loc"] in (["latitude"], ["longitude"])


# ───────────────────────── timezone ─────────────────────────

@pytest.mark.parametrize("lon,expected", [(28.97, 2), (-74.0, -5), (7.5, 1), (-7.5, 0), (0.0, 0), (179.9, 12)])
def test_estimate_timezone(lon, expected):
    assert estimate_timezone(lon) == expected


def test_resolve_timezone_iana_is_dst_aware():
    assert resolve_timezone("America/New_York", date(2024, 1, 15), -74.0) == -5.0
    assert resolve_timezone("America/New_York", date(2024, 7, 15), -74.0) == -4.0
    assert resolve_timezone("Asia/Kolkata", date(2024, 7, 15), 77.2) == 5.5
    assert resolve_timezone(None, SUMMER, 28.97) == 2.0
    assert resolve_timezone(3, SUMMER, 28.97) == 3.0


def test_resolve_timezone_unknown_zone():
    with pytest.raises(ValidationError) as ei:
        resolve_timezone("Mars/Olympus_Mons", SUMMER, 0.0)
    assert ei.value.errors()[0]["loc"] == ["timezone"]


# ───────────────────────── ranges ─────────────────────────

def test_month_lengths():
    assert len(compute_month(2024, 2, *ISTANBUL)) == 29
    assert len(compute_month(2023, 2, *ISTANBUL)) == 28
    dec = compute_month(2024, 12, *ISTANBUL)
    assert len(dec) == 31
    assert dec[-1].date == date(2024, 12, 31)


def test_last_representable_month():
    days = compute_month(9999, 12, *ISTANBUL)
    assert len(days) == 31
    assert days[-1].date == date(9999, 12, 31)


def test_month_out_of_range():
    with pytest.raises(ValidationError):
        compute_month(2024, 13, *ISTANBUL)


def test_range_inclusive_and_empty():
    days = compute_range(date(2024, 1, 1), date(2024, 1, 3), *ISTANBUL)
    assert [d.date.day for d in days] == [1, 2, 3]
    assert compute_range(date(2024, 1, 3), date(2024, 1, 1), *ISTANBUL) == []


# ───────────────────────── formatting ─────────────────────────

@pytest.mark.parametrize(
    "hours,fmt,expected",
    [
        (13.5, TimeFormat.H24, "13:30"),
        (13.5, TimeFormat.H12, "1:30 PM"),
        (0.0, TimeFormat.H12, "12:00 AM"),
        (12.0, TimeFormat.H12, "12:00 PM"),
        (23.9999, TimeFormat.H24, "00:00"),
        (25.25, TimeFormat.H24, "01:15"),
        (-0.5, TimeFormat.H24, "23:30"),
        (13.5, TimeFormat.FLOAT, "13.5000"),
        (None, TimeFormat.H24, "--:--"),
        (math.nan, TimeFormat.H12, "--:--"),
    ],
)
def test_format_time(hours, fmt, expected):
    assert format_time(hours, fmt) == expected


# ───────────────────────── next prayer ─────────────────────────

def _fixed_times(**overrides) -> PrayerTimeSet:
    values = dict(fajr=4.0, sunrise=5.5, dhuhr=13.0, asr=16.5, maghrib=20.0, isha=21.5)
    values.update(overrides)
    return PrayerTimeSet(
        **values,
        date=date(2024, 6, 21),
        method_id=mreg.DIYANET,
        asr_school=AsrSchool.SHAFI,
        location=GeoPoint(41.0, 29.0),
        timezone_offset_hours=3.0,
        provenance="test",
    )


def test_next_prayer_same_day():
    nxt = next_prayer(datetime(2024, 6, 21, 12, 0), _fixed_times())
    assert nxt.name == "dhuhr"
    assert nxt.time == "13:00"
    assert nxt.remaining_minutes == 60
    assert nxt.remaining_formatted == "1h 0m"
    assert nxt.next_day is False


def test_next_prayer_skips_unavailable():
    nxt = next_prayer(datetime(2024, 6, 21, 3, 0), _fixed_times(fajr=None))
    assert nxt.name == "sunrise"
    assert nxt.remaining_formatted == "2h 30m"


def test_next_prayer_after_isha_is_tomorrow():
    nxt = next_prayer(datetime(2024, 6, 21, 23, 0), _fixed_times())
    assert nxt.name == "fajr"
    assert nxt.next_day is True
    assert nxt.remaining_formatted == "Tomorrow"
    assert nxt.to_dict()["remaining_minutes"] is None
