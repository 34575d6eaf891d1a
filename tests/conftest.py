# tests/conftest.py
from __future__ import annotations

"""
Pytest configuration for the miqat suite.

- Registers Hypothesis profiles for local dev and CI.
- Freezes the process TZ to UTC (timezones are always passed explicitly).
- Disables the rate limiter unless a test turns it back on.
- Provides a Flask test client wired to in-process fake sources.
"""

import os
from dataclasses import replace
from typing import Dict, Optional

import pytest
from hypothesis import settings, HealthCheck

from miqat.core.providers import providers
from miqat.core.sources import InternalCalculationSource, PrayerDataSource
from miqat.utils.ratelimit import limiter


# ──────────────────────────────────────────────────────────────────────────────
# Hypothesis profiles
# ──────────────────────────────────────────────────────────────────────────────
settings.register_profile(
    "dev",
    settings(
        deadline=None,
        max_examples=60,
        suppress_health_check=[HealthCheck.too_slow],
    ),
)
settings.register_profile(
    "ci",
    settings(
        deadline=None,
        max_examples=120,
        suppress_health_check=[HealthCheck.too_slow],
    ),
)

_profile = (
    "ci"
    if (os.getenv("CI") or os.getenv("GITHUB_ACTIONS"))
    else os.getenv("HYPOTHESIS_PROFILE", "dev")
)
settings.load_profile(_profile)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "slow: mark test as slow")
    config.addinivalue_line("filterwarnings", "ignore::DeprecationWarning")


def pytest_report_header(config: pytest.Config) -> str:
    return f"Hypothesis profile: '{_profile}'"


# ──────────────────────────────────────────────────────────────────────────────
# Global fixtures
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session", autouse=True)
def freeze_tz_env():
    prev = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    try:
        yield
    finally:
        if prev is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = prev


@pytest.fixture(autouse=True)
def _isolate(monkeypatch):
    monkeypatch.setenv("MIQAT_RL_DISABLE", "1")
    providers.clear()
    limiter.reset()
    yield
    providers.clear()
    limiter.reset()


# ──────────────────────────────────────────────────────────────────────────────
# Fake data sources
# ──────────────────────────────────────────────────────────────────────────────

class FakeSource(PrayerDataSource):
    """
    Internal calculation relabelled as a remote source, optionally shifted
    per prayer (minutes) or failing with `error`.
    """

    def __init__(self, name: str = "Fake Remote", shifts: Optional[Dict[str, float]] = None,
                 error: Optional[BaseException] = None):
        self.name = name
        self.shifts = shifts or {}
        self.error = error
        self.calls = 0
        self._inner = InternalCalculationSource()

    async def get_times(self, d, latitude, longitude, options):
        self.calls += 1
        if self.error is not None:
            raise self.error
        base = await self._inner.get_times(d, latitude, longitude, options)
        moved = {
            p: (None if getattr(base, p) is None else getattr(base, p) + m / 60.0)
            for p, m in self.shifts.items()
        }
        return replace(base, provenance=self.name, **moved)


@pytest.fixture
def make_source():
    return FakeSource


@pytest.fixture
def app(make_source):
    from miqat.core.orchestrator import PrayerTimeOrchestrator
    from miqat.core.qibla import QiblaEngine
    from miqat.main import create_app

    primary = make_source()
    flask_app = create_app(
        orchestrator=PrayerTimeOrchestrator(primary),
        qibla_engine=QiblaEngine(),
    )
    flask_app.testing = True
    flask_app.config["FAKE_PRIMARY"] = primary
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
