"""Validation layer - reading and timestamp checks."""

from .metric_validator import (
    PHYSICAL_RANGES,
    ValidatedReading,
    parse_timestamp,
    validate_reading,
)

__all__ = ["PHYSICAL_RANGES", "ValidatedReading", "parse_timestamp", "validate_reading"]
