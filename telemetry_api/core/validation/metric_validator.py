"""Validation of incoming power readings."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Union

from ...errors import ValidationError
from ...schemas import MetricStatus

logger = logging.getLogger(__name__)

# Inclusive physical ranges; the device_metrics CHECK constraints mirror these.
PHYSICAL_RANGES = {
    "voltage": (100.0, 240.0),
    "current": (0.0, 100.0),
    "temperature": (0.0, 100.0),
}

ALLOWED_STATUSES = tuple(s.value for s in MetricStatus)

MAX_DEVICE_ID_LENGTH = 255


@dataclass(frozen=True)
class ValidatedReading:
    device_id: str
    voltage: float
    current: float
    temperature: float
    status: MetricStatus
    timestamp: datetime


def parse_timestamp(value: Union[str, datetime], field: str = "timestamp") -> datetime:
    """Parses RFC 3339 text (``2024-01-01T12:00:00Z``) into an aware UTC datetime.

    Text without a UTC offset is rejected, the same as RFC 3339 itself.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00").replace("z", "+00:00"))
        except ValueError:
            raise ValidationError(
                f"invalid {field} format, use RFC 3339 (e.g. 2024-01-01T12:00:00Z)",
                details={field: text},
            ) from None

    if dt.tzinfo is None:
        raise ValidationError(
            f"invalid {field} format, a UTC offset is required (e.g. 2024-01-01T12:00:00Z)",
            details={field: str(value)},
        )
    return dt.astimezone(timezone.utc)


def _check_range(field: str, value: float, errors: List[str]) -> float:
    lo, hi = PHYSICAL_RANGES[field]
    try:
        number = float(value)
    except (TypeError, ValueError):
        errors.append(f"{field} must be a number")
        return math.nan
    # NaN fails this comparison too.
    if not (lo <= number <= hi):
        errors.append(f"{field} {value} out of range [{lo:g}, {hi:g}]")
    return number


def validate_reading(
    *,
    device_id: str,
    voltage: float,
    current: float,
    temperature: float,
    status: str,
    timestamp: Optional[Union[str, datetime]] = None,
    now: Optional[datetime] = None,
) -> ValidatedReading:
    """Checks every field and raises one ValidationError listing all violations."""
    errors: List[str] = []

    # Kept verbatim: reads and cache keys use the path id unchanged.
    device_id = device_id or ""
    if not device_id.strip():
        errors.append("device_id must not be empty")
    elif len(device_id) > MAX_DEVICE_ID_LENGTH:
        errors.append(f"device_id longer than {MAX_DEVICE_ID_LENGTH} characters")

    voltage_v = _check_range("voltage", voltage, errors)
    current_v = _check_range("current", current, errors)
    temperature_v = _check_range("temperature", temperature, errors)

    status_v: Optional[MetricStatus] = None
    try:
        status_v = MetricStatus(status)
    except ValueError:
        errors.append(f"status must be one of {', '.join(ALLOWED_STATUSES)}")

    ts: Optional[datetime] = None
    if timestamp is None or (isinstance(timestamp, str) and not timestamp.strip()):
        ts = now or datetime.now(timezone.utc)
    else:
        try:
            ts = parse_timestamp(timestamp)
        except ValidationError as e:
            errors.append(e.message)

    if errors:
        logger.debug("[VALIDATOR] Rejected reading device_id=%s errors=%s", device_id, errors)
        raise ValidationError("invalid metric data", details=errors)

    return ValidatedReading(
        device_id=device_id,
        voltage=voltage_v,
        current=current_v,
        temperature=temperature_v,
        status=status_v,
        timestamp=ts,
    )
