"""Métricas Prometheus del servicio de telemetría."""

from __future__ import annotations

from prometheus_client import Counter

METRICS_INGESTED = Counter(
    "telemetry_metrics_ingested_total",
    "Metric ingestion attempts",
    ["status"],  # created, rejected, failed
)

LATEST_LOOKUPS = Counter(
    "telemetry_latest_lookups_total",
    "Latest-value lookups by where the answer came from",
    ["source"],  # cache, database, not_found
)

CACHE_ERRORS = Counter(
    "telemetry_cache_errors_total",
    "Cache operations that failed and were tolerated",
    ["operation"],  # read, decode, write, invalidate
)
