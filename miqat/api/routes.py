# miqat/api/routes.py
"""
Miqat API routes
- Local prayer-time calculation (day / month)
- Hybrid (remote + reference) prayer times with cross-check verdict
- Qibla (true / magnetic)
- Method registry and high-latitude helpers
- Authorities, Ramadan calendar and the combined per-place summary

Views are synchronous; the async engines run under asyncio.run() per request.
Engines and sources are built by the app factory and live in
current_app.extensions["miqat"].
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from flask import Blueprint, current_app, jsonify, request

from miqat.version import VERSION
from miqat.core import methods as mreg, ramadan
from miqat.core.authorities import all_authorities, authority_for_country, method_id_for_country
from miqat.core.calculator import compute_month, compute_times, next_prayer
from miqat.core.constants import PRAYERS
from miqat.core.countries import to_country_code
from miqat.core.high_latitude import recommend_method, requires_adjustment
from miqat.core.islamic_data import islamic_data
from miqat.core.orchestrator import PrayerTimeOrchestrator
from miqat.core.providers import FixedDeclinationProvider
from miqat.core.qibla import QiblaEngine
from miqat.core.validators import (
    ValidationError,
    parse_accurate_payload,
    parse_latlon,
    parse_month_payload,
    parse_prayer_payload,
    parse_qibla_payload,
    parse_ramadan_check_payload,
    parse_ramadan_payload,
)
from miqat.utils.ratelimit import rate_limit

log = logging.getLogger(__name__)
api = Blueprint("api", __name__)

# ── per-endpoint rate-limit caps (calls per minute, env-overridable) ───────────
_RL = lambda k, d: int(os.getenv(k, str(d)))
RL_PRAYER    = _RL("MIQAT_RL_PRAYER_PER_MIN",   60)
RL_MONTH     = _RL("MIQAT_RL_MONTH_PER_MIN",    12)
RL_ACCURATE  = _RL("MIQAT_RL_ACCURATE_PER_MIN", 20)
RL_QIBLA     = _RL("MIQAT_RL_QIBLA_PER_MIN",    60)


@dataclass
class Services:
    orchestrator: PrayerTimeOrchestrator
    qibla: QiblaEngine


# ───────────────────────── helpers ─────────────────────────
def _services() -> Services:
    return current_app.extensions["miqat"]


def _json_error(code: str, details: Any = None, http: int = 400):
    out: Dict[str, Any] = {"ok": False, "error": code}
    if details is not None:
        out["details"] = details
    return jsonify(out), http


def _request_data() -> Dict[str, Any]:
    """JSON object for POST, query args for GET (adjust_<prayer>=N -> adjustments)."""
    if request.method == "POST":
        body = request.get_json(force=True, silent=True)
        if not isinstance(body, dict):
            raise ValidationError("JSON body must be an object")
        return body
    data: Dict[str, Any] = request.args.to_dict()
    adj = {p: data.pop(f"adjust_{p}") for p in PRAYERS if f"adjust_{p}" in data}
    if adj:
        data["adjustments"] = adj
    return data


def _local_now(offset_hours: Optional[float]) -> datetime:
    now = datetime.now(timezone.utc)
    return (now + timedelta(hours=offset_hours or 0.0)).replace(tzinfo=None)


# ───────────────────────── health / meta ─────────────────────────
@api.get("/api/health")
def health():
    return jsonify({"ok": True, "status": "up", "version": VERSION}), 200


@api.get("/api/methods")
def list_methods():
    return jsonify({"ok": True, "default": mreg.DEFAULT_METHOD_ID, "methods": mreg.methods_for_ui()}), 200


@api.get("/api/methods/resolve")
def resolve_method():
    country = request.args.get("country")
    method_id = method_id_for_country(country)
    auth = authority_for_country(country)
    return jsonify({
        "ok": True,
        "country": to_country_code(country),
        "authority": auth.authority_short if auth else None,
        "method_id": method_id,
        "method": mreg.method_name(method_id),
        "angles": mreg.method_angles(method_id),
    }), 200


@api.get("/api/high-latitude/recommend")
def high_latitude_recommend():
    try:
        lat, _ = parse_latlon(request.args.get("latitude"), 0.0)
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    return jsonify({
        "ok": True,
        "latitude": lat,
        "requires_adjustment": requires_adjustment(lat),
        "recommended": recommend_method(lat).value,
    }), 200


# ───────────────────────── prayer times ─────────────────────────
@api.route("/api/prayer-times", methods=["GET", "POST"])
@rate_limit(RL_PRAYER)
def prayer_times():
    try:
        p = parse_prayer_payload(_request_data())
        times = compute_times(p["date"], p["latitude"], p["longitude"], p["config"])
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)

    fmt = p["config"].time_format
    out = {"ok": True, **times.to_dict(fmt), "method": mreg.method_name(times.method_id)}
    now = _local_now(times.timezone_offset_hours)
    if now.date() == times.date:
        out["next_prayer"] = next_prayer(now, times, fmt).to_dict()
    return jsonify(out), 200


@api.route("/api/prayer-times/month", methods=["GET", "POST"])
@rate_limit(RL_MONTH)
def prayer_times_month():
    try:
        year, month, lat, lon, cfg = parse_month_payload(_request_data())
        days = compute_month(year, month, lat, lon, cfg)
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    return jsonify({
        "ok": True,
        "year": year,
        "month": month,
        "method": mreg.method_name(cfg.method_id),
        "days": [d.to_dict(cfg.time_format) for d in days],
    }), 200


@api.route("/api/prayer-times/accurate", methods=["GET", "POST"])
@rate_limit(RL_ACCURATE)
def prayer_times_accurate():
    try:
        d, lat, lon, opts, fmt = parse_accurate_payload(_request_data())
        result = asyncio.run(_services().orchestrator.get_accurate_times(d, lat, lon, opts))
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    return jsonify({"ok": True, **result.to_dict(fmt)}), 200


# ───────────────────────── qibla ─────────────────────────
@api.get("/api/qibla")
@rate_limit(RL_QIBLA)
def qibla():
    try:
        q = parse_qibla_payload(request.args.to_dict())
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)

    engine = _services().qibla
    if q["declination"] is not None:
        engine = QiblaEngine(FixedDeclinationProvider(q["declination"]))
    result = asyncio.run(engine.compute_qibla_with_magnetic(q["latitude"], q["longitude"]))
    return jsonify({"ok": True, **result.to_dict()}), 200


# ───────────────────────── authorities & ramadan ─────────────────────────
@api.get("/api/authorities")
def list_authorities():
    return jsonify({"ok": True, "authorities": [a.to_dict() for a in all_authorities()]}), 200


@api.get("/api/authorities/<country>")
def get_authority(country: str):
    auth = authority_for_country(country)
    if auth is None:
        return _json_error("not_found", {"country": country}, 404)
    return jsonify({"ok": True, **auth.to_dict()}), 200


@api.get("/api/ramadan")
def ramadan_calendar_view():
    try:
        year, country = parse_ramadan_payload(request.args.to_dict())
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    period = ramadan.ramadan_dates_for_country(year, country)
    if period is None:
        return _json_error("not_found", {"hijri_year": year}, 404)
    return jsonify({
        "ok": True,
        "hijri_year": year,
        "country": to_country_code(country),
        **period.to_dict(),
        "days": [d.to_dict() for d in ramadan.ramadan_calendar(year, country)],
    }), 200


@api.get("/api/ramadan/compare")
def ramadan_compare():
    try:
        year, _ = parse_ramadan_payload(request.args.to_dict())
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    return jsonify({"ok": True, "hijri_year": year, "countries": ramadan.compare_ramadan_start_dates(year)}), 200


@api.get("/api/ramadan/check")
def ramadan_check():
    try:
        d, country = parse_ramadan_check_payload(request.args.to_dict())
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    return jsonify({
        "ok": True,
        "date": d.isoformat(),
        "country": to_country_code(country),
        "is_ramadan": ramadan.is_ramadan(d, country),
        "day": ramadan.ramadan_day(d, country),
    }), 200


@api.route("/api/islamic-data", methods=["GET", "POST"])
@rate_limit(RL_PRAYER)
def islamic_data_view():
    try:
        body = _request_data()
        p = parse_prayer_payload(body)
        data = islamic_data(p["date"], p["latitude"], p["longitude"], body.get("country"), p["config"],
                            qibla_engine=_services().qibla)
    except ValidationError as e:
        return _json_error("validation_error", e.errors(), 422)
    return jsonify({"ok": True, **data.to_dict(p["config"].time_format)}), 200
