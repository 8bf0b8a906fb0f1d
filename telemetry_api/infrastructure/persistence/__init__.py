"""Persistence infrastructure for device metrics.

``MetricStore`` lives in ``metric_store``; it is not re-exported here so
that the query module can import the table definition without a cycle.
"""

from .schema import device_metrics, ensure_schema, metadata

__all__ = [
    "device_metrics",
    "ensure_schema",
    "metadata",
]
