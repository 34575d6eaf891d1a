# miqat/main.py
from __future__ import annotations

import hmac
import logging
import os
from time import perf_counter
from typing import Any, Optional

from flask import Flask, Response, jsonify, request
from flask_cors import CORS
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from miqat.api.routes import Services, api as _routes_bp
from miqat.core.aladhan import DEFAULT_BASE_URL as ALADHAN_URL, AlAdhanSource
from miqat.core.crosscheck import CrossCheckValidator
from miqat.core.diyanet import DEFAULT_BASE_URL as DIYANET_URL, DiyanetSource
from miqat.core.errors import ValidationError
from miqat.core.orchestrator import PrayerTimeOrchestrator
from miqat.core.providers import FixedDeclinationProvider, providers
from miqat.core.qibla import QiblaEngine
from miqat.core.sources import InternalCalculationSource, PrayerDataSource
from miqat.utils.cache import TTLCache
from miqat.utils.config import AttrDict, load_config
from miqat.utils.metrics import GAUGE_APP_UP, MET_REQUESTS, REQ_LATENCY
from miqat.version import VERSION

log = logging.getLogger(__name__)

_TRACKED = ("/", "/health", "/healthz", "/metrics")


# ───────────────────────── helpers: logging & errors ─────────────────────────
def _configure_logging(app: Flask) -> None:
    gunicorn_err = logging.getLogger("gunicorn.error")
    if not gunicorn_err.handlers:
        logging.basicConfig(
            level=os.environ.get("LOG_LEVEL", "INFO"),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        return
    # share gunicorn's handlers with the app and the miqat package loggers
    for target in (app.logger, logging.getLogger("miqat")):
        target.handlers = gunicorn_err.handlers
        target.setLevel(gunicorn_err.level)


def _error(status: int, error: str, **extra):
    body = {"ok": False, "error": error, "path": request.path}
    body.update(extra)
    return jsonify(body), status


def _register_errors(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        return _error(422, "validation_error", details=e.errors())

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        code = e.code or 500
        level = logging.ERROR if code >= 500 else logging.INFO
        app.logger.log(level, "%s %s -> %d %s", request.method, request.path, code, e.name)
        return _error(code, "http_error", code=code, name=e.name, message=e.description)

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        app.logger.exception("request %s %s failed with %s", request.method, request.path, type(e).__name__)
        return _error(500, "internal_error", type=type(e).__name__)


# ───────────────────────── health & metrics ─────────────────────────
def _register_health(app: Flask) -> None:
    @app.route("/", methods=["GET"])
    def root():
        return jsonify(
            ok=True,
            service="miqat",
            version=VERSION,
            endpoints=["/health", "/api/methods", "/api/prayer-times", "/api/qibla"],
        ), 200

    @app.route("/health", methods=["GET"])
    @app.route("/healthz", methods=["GET"])
    def health():
        return jsonify(ok=True, status="ok"), 200


def _metrics_auth_ok() -> bool:
    user = os.getenv("METRICS_USER", "")
    password = os.getenv("METRICS_PASS", "")
    auth = request.authorization
    if not (user and password and auth is not None and auth.type == "basic"):
        return False
    return hmac.compare_digest(auth.username or "", user) and hmac.compare_digest(auth.password or "", password)


def _register_metrics(app: Flask) -> None:
    @app.before_request
    def _before():
        p = request.path or ""
        if p.startswith("/api/") or p in _TRACKED:
            MET_REQUESTS.labels(route=p).inc()
            request.environ["miqat.t0"] = perf_counter()

    @app.after_request
    def _after(resp):
        t0 = request.environ.get("miqat.t0")
        if t0 is not None and request.path != "/metrics":
            REQ_LATENCY.labels(route=request.path).observe(perf_counter() - t0)
        return resp

    @app.route("/metrics", methods=["GET"])
    def metrics_endpoint():
        if not _metrics_auth_ok():
            return Response("Unauthorized", 401, {"WWW-Authenticate": 'Basic realm="metrics"'})
        GAUGE_APP_UP.set(1.0)
        return Response(generate_latest(REGISTRY), mimetype=CONTENT_TYPE_LATEST)


# ───────────────────────── services ─────────────────────────
def _section(cfg: AttrDict, name: str) -> AttrDict:
    val = cfg.get(name)
    return val if isinstance(val, dict) else AttrDict()


def _remote_kwargs(section: AttrDict, default_url: str, default_ttl: float) -> dict:
    return {
        "base_url": section.get("base_url", default_url),
        "cache": TTLCache(ttl_seconds=float(section.get("cache_ttl_seconds", default_ttl))),
        "retries": int(section.get("retries", 2)),
        "timeout_ms": float(section.get("timeout_ms", 3000)),
        "backoff_ms": float(section.get("backoff_ms", 1000)),
    }


def build_primary(cfg: AttrDict) -> PrayerDataSource:
    which = str(_section(cfg, "service").get("primary", "aladhan")).strip().lower()
    if which == "diyanet":
        return DiyanetSource(**_remote_kwargs(_section(cfg, "diyanet"), DIYANET_URL, 6 * 3600))
    if which != "aladhan":
        raise ValueError(f"unknown primary source {which!r} (expected aladhan or diyanet)")
    return AlAdhanSource(**_remote_kwargs(_section(cfg, "aladhan"), ALADHAN_URL, 3600))


def build_orchestrator(cfg: AttrDict) -> PrayerTimeOrchestrator:
    cc = _section(cfg, "crosscheck")
    validator = CrossCheckValidator(
        default_tolerance=float(cc.get("default_tolerance", 2)),
        strict_tolerance=float(cc.get("strict_tolerance", 1)),
        critical_threshold=float(cc.get("critical_threshold", 15)),
    )
    return PrayerTimeOrchestrator(build_primary(cfg), InternalCalculationSource(), validator)


def _register_providers(cfg: AttrDict) -> None:
    dec = _section(cfg, "magnetic").get("declination")
    if dec is not None:
        providers.register_magnetic_provider(FixedDeclinationProvider(float(dec)))


# ───────────────────────── app factory ─────────────────────────
def create_app(
    config_path: Optional[str] = None,
    *,
    orchestrator: Optional[PrayerTimeOrchestrator] = None,
    qibla_engine: Optional[QiblaEngine] = None,
) -> Flask:
    app = Flask(__name__)
    app.config["JSON_SORT_KEYS"] = False
    app.json.sort_keys = False
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore

    _configure_logging(app)

    cfg = load_config(config_path or os.environ.get("MIQAT_CONFIG", "config/defaults.yaml"))
    app.config["MIQAT"] = cfg
    _register_providers(cfg)

    app.extensions["miqat"] = Services(
        orchestrator=orchestrator or build_orchestrator(cfg),
        qibla=qibla_engine or QiblaEngine(providers.magnetic_provider()),
    )

    for route in ("/api/prayer-times", "/api/prayer-times/accurate", "/api/qibla") + _TRACKED:
        MET_REQUESTS.labels(route=route).inc(0)
    GAUGE_APP_UP.set(1.0)

    _register_health(app)
    _register_errors(app)
    _register_metrics(app)
    app.register_blueprint(_routes_bp)

    allowed_origin: Any = os.environ.get("CORS_ALLOW_ORIGIN") or "*"
    CORS(
        app,
        resources={r"/.*": {"origins": allowed_origin}},
        supports_credentials=False,
        methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-API-Key"],
        max_age=600,
    )

    app.logger.info("miqat %s initialized; blueprints=%s", VERSION, list(app.blueprints.keys()))
    return app


# ───────────────────────── app instance ─────────────────────────
app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
