# tests/test_validators.py
from __future__ import annotations

from datetime import date

import pytest

from miqat.core import methods as mreg
from miqat.core.models import AsrSchool, HighLatitudeMethod, TimeFormat
from miqat.core.validators import (
    ValidationError,
    parse_accurate_payload,
    parse_asr_school,
    parse_high_latitude,
    parse_month_payload,
    parse_prayer_payload,
    parse_hijri_year,
    parse_qibla_payload,
    parse_ramadan_check_payload,
    parse_ramadan_payload,
    parse_timezone,
)

TODAY = date(2024, 6, 21)


def _loc(e: ValidationError):
    return e.errors()[0]["loc"]


def test_prayer_payload_defaults():
    p = parse_prayer_payload({"lat": "41.0", "lng": 29}, today=TODAY)
    assert p["date"] == TODAY
    assert (p["latitude"], p["longitude"]) == (41.0, 29.0)
    cfg = p["config"]
    assert cfg.method_id == mreg.DIYANET
    assert cfg.high_latitude_method is HighLatitudeMethod.ANGLE_BASED
    assert cfg.time_format is TimeFormat.H24
    assert cfg.apply_method_adjustments is True


def test_prayer_payload_full():
    p = parse_prayer_payload({
        "date": "2024-03-01", "latitude": 51.5, "longitude": -0.12,
        "method": "3", "school": "Hanafi", "high_latitude": "middle_of_night",
        "timezone": "Europe/London", "format": "12h", "method_adjustments": "false",
        "adjustments": {"fajr": "2", "isha": -1},
    })
    cfg = p["config"]
    assert p["date"] == date(2024, 3, 1)
    assert cfg.method_id == mreg.MWL
    assert cfg.asr_school is AsrSchool.HANAFI
    assert cfg.high_latitude_method is HighLatitudeMethod.MIDDLE_OF_NIGHT
    assert cfg.timezone == "Europe/London"
    assert cfg.time_format is TimeFormat.H12
    assert cfg.apply_method_adjustments is False
    assert cfg.adjustments == {"fajr": 2.0, "isha": -1.0}


def test_method_resolved_from_country():
    p = parse_prayer_payload({"latitude": 21.4, "longitude": 39.8, "country": "sa"}, today=TODAY)
    assert p["config"].method_id == mreg.UMM_AL_QURA
    p = parse_prayer_payload({"latitude": 52.5, "longitude": 13.4, "country": "Germany"}, today=TODAY)
    assert p["config"].method_id == mreg.MWL
    # an explicit method beats the country
    p = parse_prayer_payload({"latitude": 52.5, "longitude": 13.4, "country": "Germany", "method": 2}, today=TODAY)
    assert p["config"].method_id == mreg.ISNA


@pytest.mark.parametrize("body,loc", [
    ({"latitude": 95, "longitude": 0}, ["latitude"]),
    ({"latitude": 0, "longitude": -190}, ["longitude"]),
    ({"latitude": "abc", "longitude": 0}, ["latitude", "longitude"]),
    ({"latitude": 0, "longitude": 0, "date": "21/06/2024"}, ["date"]),
    ({"latitude": 0, "longitude": 0, "method": "mwl"}, ["method"]),
    ({"latitude": 0, "longitude": 0, "school": "maliki"}, ["school"]),
    ({"latitude": 0, "longitude": 0, "timezone": "Nowhere/City"}, ["timezone"]),
    ({"latitude": 0, "longitude": 0, "timezone": 15}, ["timezone"]),
    ({"latitude": 0, "longitude": 0, "format": "roman"}, ["format"]),
    ({"latitude": 0, "longitude": 0, "adjustments": {"witr": 1}}, ["adjustments", "witr"]),
    ({"latitude": 0, "longitude": 0, "adjustments": [1, 2]}, ["adjustments"]),
    ({"latitude": 0, "longitude": 0, "high_latitude_threshold": 120}, ["high_latitude_threshold"]),
])
def test_prayer_payload_errors(body, loc):
    with pytest.raises(ValidationError) as ei:
        parse_prayer_payload(body, today=TODAY)
    assert _loc(ei.value) == loc


def test_non_object_payload():
    with pytest.raises(ValidationError):
        parse_prayer_payload(["not", "a", "dict"])


@pytest.mark.parametrize("raw,expected", [
    ("shafi", AsrSchool.SHAFI), ("Standard", AsrSchool.SHAFI), ("0", AsrSchool.SHAFI),
    ("hanafi", AsrSchool.HANAFI), (1, AsrSchool.HANAFI), (None, None), ("", None),
])
def test_asr_school_aliases(raw, expected):
    assert parse_asr_school(raw) is expected


@pytest.mark.parametrize("raw,expected", [
    ("none", HighLatitudeMethod.NONE), ("oneSeventh", HighLatitudeMethod.ONE_SEVENTH),
    ("angle-based", HighLatitudeMethod.ANGLE_BASED), (None, HighLatitudeMethod.ANGLE_BASED),
])
def test_high_latitude_aliases(raw, expected):
    assert parse_high_latitude(raw) is expected


def test_timezone_forms():
    assert parse_timezone(None) is None
    assert parse_timezone("") is None
    assert parse_timezone("3") == 3.0
    assert parse_timezone(-4.5) == -4.5
    assert parse_timezone(" Asia/Tehran ") == "Asia/Tehran"


def test_month_payload():
    year, month, lat, lon, cfg = parse_month_payload({"year": "2024", "month": 2, "lat": 41, "lon": 29}, today=TODAY)
    assert (year, month, lat, lon) == (2024, 2, 41.0, 29.0)
    y2, m2, *_ = parse_month_payload({"lat": 41, "lon": 29}, today=TODAY)
    assert (y2, m2) == (2024, 6)
    with pytest.raises(ValidationError) as ei:
        parse_month_payload({"month": 13, "lat": 41, "lon": 29})
    assert _loc(ei.value) == ["month"]


@pytest.mark.parametrize("body,loc", [
    ({"year": 0, "month": 5}, ["year"]),
    ({"year": "0", "month": 5}, ["year"]),
    ({"year": 2024, "month": 0}, ["month"]),
])
def test_month_payload_zero_is_not_missing(body, loc):
    with pytest.raises(ValidationError) as ei:
        parse_month_payload({**body, "lat": 41, "lon": 29}, today=TODAY)
    assert _loc(ei.value) == loc


def test_accurate_payload():
    d, lat, lon, opts, fmt = parse_accurate_payload({
        "latitude": 41, "longitude": 29, "accuracy": "150.5", "forceFallback": "true",
        "school": "hanafi", "district": "istanbul", "format": "float",
    }, today=TODAY)
    assert d == TODAY
    assert opts.accuracy == 150.5
    assert opts.force_fallback is True
    assert opts.asr_school is AsrSchool.HANAFI
    assert opts.district == "istanbul"
    assert fmt is TimeFormat.FLOAT

    with pytest.raises(ValidationError) as ei:
        parse_accurate_payload({"latitude": 41, "longitude": 29, "accuracy": -1})
    assert _loc(ei.value) == ["accuracy"]


def test_qibla_payload():
    q = parse_qibla_payload({"latitude": "41", "longitude": "29", "declination": "5.2"})
    assert q == {"latitude": 41.0, "longitude": 29.0, "declination": 5.2}
    assert parse_qibla_payload({"lat": 41, "lon": 29})["declination"] is None
    with pytest.raises(ValidationError):
        parse_qibla_payload({"lat": 41, "lon": 29, "declination": "east"})


def test_hijri_year():
    assert parse_hijri_year("1447") == 1447
    assert parse_hijri_year(1446) == 1446
    for bad in (None, "", "soon", True, 0, -5):
        with pytest.raises(ValidationError) as ei:
            parse_hijri_year(bad)
        assert _loc(ei.value) == ["year"]


def test_ramadan_payloads():
    assert parse_ramadan_payload({"year": "1447", "country": "Turkey"}) == (1447, "Turkey")
    assert parse_ramadan_payload({"hijri_year": 1448}) == (1448, None)
    assert parse_ramadan_check_payload({"country": "tr"}, today=TODAY) == (TODAY, "tr")
    assert parse_ramadan_check_payload({"date": "2026-03-10"}, today=TODAY) == (date(2026, 3, 10), None)
    with pytest.raises(ValidationError):
        parse_ramadan_check_payload({"date": "March"})
