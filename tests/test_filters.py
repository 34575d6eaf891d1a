# tests/test_filters.py
from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from miqat.core.filters import AngleLowPassFilter, LowPassFilter


def test_low_pass_first_value_passes_through():
    f = LowPassFilter(0.5)
    assert f.next(10.0) == 10.0
    assert f.next(20.0) == 15.0
    assert f.next(20.0) == 17.5
    f.reset()
    assert f.next(-4.0) == -4.0


def test_alpha_one_is_identity():
    f = LowPassFilter(1.0)
    assert [f.next(x) for x in (3.0, -7.0, 12.5)] == [3.0, -7.0, 12.5]


@pytest.mark.parametrize("alpha", [0.0, -0.1, 1.5])
def test_alpha_out_of_range(alpha):
    with pytest.raises(ValueError):
        LowPassFilter(alpha)


def test_angle_filter_wraps_through_north():
    f = AngleLowPassFilter(0.5)
    assert f.next(359.0) == pytest.approx(359.0)
    out = f.next(1.0)
    assert out == pytest.approx(0.0, abs=1e-9) or out == pytest.approx(360.0, abs=1e-9)


def test_angle_filter_reset():
    f = AngleLowPassFilter(0.25)
    f.next(90.0)
    f.reset()
    assert f.next(270.0) == pytest.approx(270.0)


@given(st.floats(min_value=0.0, max_value=359.99), st.floats(min_value=0.05, max_value=1.0))
def test_steady_heading_is_a_fixed_point(heading, alpha):
    f = AngleLowPassFilter(alpha)
    for _ in range(5):
        out = f.next(heading)
    assert 0.0 <= out < 360.0
    diff = abs((out - heading + 180.0) % 360.0 - 180.0)
    assert diff < 1e-6
