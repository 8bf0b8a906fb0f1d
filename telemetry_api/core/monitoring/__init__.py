"""Monitoring - health checks."""

from .health import HealthChecker, HealthStatus

__all__ = ["HealthChecker", "HealthStatus"]
