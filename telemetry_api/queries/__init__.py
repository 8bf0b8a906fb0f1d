"""SQL statements for device_metrics.

Statement construction only; execution lives in MetricStore.
"""
