"""Error taxonomy shared by services and endpoints.

Services raise these; ``main`` maps each class to an HTTP status.
"""

from __future__ import annotations

from typing import Any, Optional


class TelemetryError(Exception):
    """Base class for every failure the core reports."""

    status_code = 500

    def __init__(self, message: str, *, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(TelemetryError):
    """Bad shape, out-of-range value, unknown status or unparseable time."""

    status_code = 400


class NotFoundError(TelemetryError):
    status_code = 404


class UnsupportedTypeError(TelemetryError):
    """A cache key holds a type the admin surface cannot decode."""

    status_code = 400


class DependencyError(TelemetryError):
    """The metric store or the cache failed; never retried."""

    status_code = 500
