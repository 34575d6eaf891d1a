# tests/test_app.py
from __future__ import annotations

import pytest

from miqat.core.aladhan import AlAdhanSource
from miqat.core.diyanet import DiyanetSource
from miqat.main import build_orchestrator, build_primary, create_app
from miqat.utils.config import load_config


def _cfg(tmp_path, text: str):
    p = tmp_path / "miqat.yaml"
    p.write_text(text, encoding="utf-8")
    return load_config(str(p))


def test_primary_defaults_to_aladhan(tmp_path):
    src = build_primary(_cfg(tmp_path, "aladhan:\n  base_url: http://mirror.test/v1/\n  retries: 5\n"))
    assert isinstance(src, AlAdhanSource)
    assert src.base_url == "http://mirror.test/v1"
    assert src.retries == 5


def test_primary_diyanet(tmp_path, monkeypatch):
    monkeypatch.setenv("MIQAT_PRIMARY_SOURCE", "Diyanet")
    src = build_primary(_cfg(tmp_path, "diyanet:\n  cache_ttl_seconds: 60\n"))
    assert isinstance(src, DiyanetSource)
    assert src.cache.ttl == 60


def test_unknown_primary_rejected(tmp_path):
    with pytest.raises(ValueError):
        build_primary(_cfg(tmp_path, "service:\n  primary: carrier-pigeon\n"))


def test_crosscheck_thresholds_from_config(tmp_path, monkeypatch):
    monkeypatch.setenv("MIQAT_CRITICAL_THRESHOLD", "30")
    orch = build_orchestrator(_cfg(tmp_path, "crosscheck:\n  default_tolerance: 3\n"))
    assert orch.validator.default_tolerance == 3
    assert orch.validator.strict_tolerance == 1
    assert orch.validator.critical_threshold == 30


def test_configured_declination_reaches_qibla(tmp_path, monkeypatch):
    monkeypatch.setenv("MIQAT_MAGNETIC_DECLINATION", "4")
    app = create_app(str(tmp_path / "absent.yaml"))
    data = app.test_client().get("/api/qibla?latitude=41&longitude=29").get_json()
    assert data["declination"] == 4.0
    assert data["magnetic_direction"] is not None
