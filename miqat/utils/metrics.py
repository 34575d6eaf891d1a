# miqat/utils/metrics.py
from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Gauge, Histogram

# Registered once per process on the default registry (exported at /metrics).
MET_REQUESTS: Final = Counter("miqat_api_requests_total", "API requests", ["route"])
REQ_LATENCY: Final = Histogram("miqat_request_seconds", "API request latency", ["route"])
MET_ORCHESTRATION: Final = Counter(
    "miqat_orchestration_total", "Hybrid validation outcomes", ["status", "source"]
)
MET_SOURCE_ERRORS: Final = Counter(
    "miqat_source_errors_total", "Primary source failures", ["source", "kind"]
)
MET_WARNINGS: Final = Counter("miqat_warning_total", "Non-fatal warnings", ["kind"])
GAUGE_APP_UP: Final = Gauge("miqat_app_up", "1 if app is running")
