"""Prometheus counters."""

from .counters import CACHE_ERRORS, LATEST_LOOKUPS, METRICS_INGESTED

__all__ = ["CACHE_ERRORS", "LATEST_LOOKUPS", "METRICS_INGESTED"]
