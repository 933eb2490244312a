# wishwall/observability/metrics.py
# minimal prometheus instrumentation for database round-trips

from __future__ import annotations

import os
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_client.multiprocess import MultiProcessCollector

# NOTE: PROMETHEUS_MULTIPROC_DIR must be set BEFORE importing this module in multi-proc setups.
PROM_MP_DIR = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
HAVE_MP = bool(PROM_MP_DIR and os.path.isdir(PROM_MP_DIR))

REGISTRY: Optional[CollectorRegistry] = None
if HAVE_MP:
    REGISTRY = CollectorRegistry()
    MultiProcessCollector(REGISTRY)

QUERY_LATENCY: Optional[Histogram] = None
QUERY_ERRORS: Optional[Counter] = None


def _ensure_metrics() -> None:
    global QUERY_LATENCY, QUERY_ERRORS
    if QUERY_LATENCY is not None:
        return

    registry_kwargs = {"registry": REGISTRY} if REGISTRY is not None else {}
    QUERY_LATENCY = Histogram(
        "wishwall_db_query_seconds",
        "Database query latency in seconds",
        labelnames=("dialect", "operation"),
        **registry_kwargs,
    )
    QUERY_ERRORS = Counter(
        "wishwall_db_query_errors_total",
        "Failed database queries",
        labelnames=("dialect", "operation"),
        **registry_kwargs,
    )


def observe_query(dialect: str, operation: str, elapsed: float, failed: bool = False) -> None:
    """Record one round-trip. Labels use the statement verb to keep cardinality low."""
    _ensure_metrics()
    verb = operation.split()[0].upper() if operation else "UNKNOWN"
    QUERY_LATENCY.labels(dialect, verb).observe(elapsed)
    if failed:
        QUERY_ERRORS.labels(dialect, verb).inc()
