# tests/test_high_latitude.py
from __future__ import annotations

from datetime import date

import pytest

from miqat.core import high_latitude as hl
from miqat.core import methods as mreg
from miqat.core.calculator import CalculationConfig, compute_times
from miqat.core.models import HighLatitudeMethod

OSLO = (59.9139, 10.7522)
LONGYEARBYEN = (78.2232, 15.6267)
MIDSUMMER = date(2024, 6, 21)


def test_night_duration_wraps_midnight():
    assert hl.night_duration(4.0, 22.0) == pytest.approx(6.0)


@pytest.mark.parametrize(
    "method,expected",
    [
        (HighLatitudeMethod.MIDDLE_OF_NIGHT, 3.0),
        (HighLatitudeMethod.ONE_SEVENTH, 6.0 / 7.0),
        (HighLatitudeMethod.ANGLE_BASED, (18.0 / 60.0) * 3.0),
        (HighLatitudeMethod.NONE, None),
    ],
)
def test_night_portion(method, expected):
    got = hl.night_portion(method, 18.0, 6.0)
    if expected is None:
        assert got is None
    else:
        assert got == pytest.approx(expected)


def test_fill_only_when_unavailable():
    assert hl.adjust_fajr(2.5, 4.0, 22.0, 18.0, HighLatitudeMethod.MIDDLE_OF_NIGHT) == 2.5
    assert hl.adjust_isha(23.5, 4.0, 22.0, 17.0, HighLatitudeMethod.MIDDLE_OF_NIGHT) == 23.5


def test_fill_from_night():
    assert hl.adjust_fajr(None, 4.0, 22.0, 18.0, HighLatitudeMethod.MIDDLE_OF_NIGHT) == pytest.approx(1.0)
    assert hl.adjust_isha(None, 4.0, 22.0, 17.0, HighLatitudeMethod.ONE_SEVENTH) == pytest.approx(22.0 + 6.0 / 7.0)


def test_isha_angle_defaults_for_minute_based_methods():
    got = hl.adjust_isha(None, 4.0, 22.0, None, HighLatitudeMethod.ANGLE_BASED)
    assert got == pytest.approx(22.0 + (17.0 / 60.0) * 3.0)


def test_policy_none_leaves_unavailable():
    assert hl.adjust_fajr(None, 4.0, 22.0, 18.0, HighLatitudeMethod.NONE) is None


def test_no_night_means_no_fill():
    assert hl.adjust_fajr(None, None, None, 18.0, HighLatitudeMethod.MIDDLE_OF_NIGHT) is None
    assert hl.adjust_isha(None, 3.0, None, 17.0, HighLatitudeMethod.MIDDLE_OF_NIGHT) is None


def test_requires_adjustment_threshold():
    assert hl.requires_adjustment(48.0)
    assert hl.requires_adjustment(-50.0)
    assert not hl.requires_adjustment(47.99)
    assert hl.requires_adjustment(45.0, threshold=45.0)


@pytest.mark.parametrize(
    "lat,expected",
    [
        (30.0, HighLatitudeMethod.NONE),
        (47.9, HighLatitudeMethod.NONE),
        (48.0, HighLatitudeMethod.ANGLE_BASED),
        (-54.9, HighLatitudeMethod.ANGLE_BASED),
        (55.0, HighLatitudeMethod.ONE_SEVENTH),
        (60.0, HighLatitudeMethod.MIDDLE_OF_NIGHT),
        (-75.0, HighLatitudeMethod.MIDDLE_OF_NIGHT),
    ],
)
def test_recommend_method_ladder(lat, expected):
    assert hl.recommend_method(lat) is expected


# ───────────────────────── through the calculator ─────────────────────────

def _oslo(policy: HighLatitudeMethod):
    cfg = CalculationConfig(method_id=mreg.MWL, high_latitude_method=policy,
                            apply_method_adjustments=False, timezone=2.0)
    return compute_times(MIDSUMMER, *OSLO, cfg)


def test_oslo_midsummer_angle_based():
    t = _oslo(HighLatitudeMethod.ANGLE_BASED)
    assert t.sunrise is not None and t.maghrib is not None
    night = hl.night_duration(t.sunrise, t.maghrib)
    assert t.fajr == pytest.approx(t.sunrise - (18.0 / 60.0) * night / 2.0)
    assert t.isha == pytest.approx(t.maghrib + (17.0 / 60.0) * night / 2.0)
    assert t.fajr < t.sunrise < t.dhuhr < t.asr < t.maghrib < t.isha


def test_oslo_midsummer_without_policy_is_unavailable():
    t = _oslo(HighLatitudeMethod.NONE)
    assert t.fajr is None and t.isha is None
    assert t.formatted()["fajr"] == "--:--"
    assert t.sunrise is not None


def test_polar_day_leaves_everything_but_noon_unavailable():
    cfg = CalculationConfig(method_id=mreg.MWL, high_latitude_method=HighLatitudeMethod.MIDDLE_OF_NIGHT)
    t = compute_times(MIDSUMMER, *LONGYEARBYEN, cfg)
    assert t.sunrise is None and t.maghrib is None
    assert t.fajr is None and t.isha is None
    assert t.dhuhr is not None
    assert t.formatted()["isha"] == "--:--"
