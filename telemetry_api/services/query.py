"""QueryService - paginated, time-filtered history for one device."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Union

from ..core.validation import parse_timestamp
from ..errors import ValidationError
from ..infrastructure.persistence.metric_store import MetricStore
from ..schemas import Metric

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000


def _to_int(value: Optional[Union[str, int]]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def clamp_limit(value: Optional[Union[str, int]]) -> int:
    """Missing, non-numeric, <=0 or >1000 all become 100."""
    limit = _to_int(value)
    if limit is None or limit <= 0 or limit > MAX_LIMIT:
        return DEFAULT_LIMIT
    return limit


def clamp_offset(value: Optional[Union[str, int]]) -> int:
    offset = _to_int(value)
    if offset is None or offset < 0:
        return 0
    return offset


def _optional_time(value: Optional[Union[str, datetime]], field: str) -> Optional[datetime]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_timestamp(value, field)


class QueryService:
    def __init__(self, store: MetricStore):
        self._store = store

    def query_range(
        self,
        device_id: str,
        start_time: Optional[Union[str, datetime]] = None,
        end_time: Optional[Union[str, datetime]] = None,
        limit: Optional[Union[str, int]] = DEFAULT_LIMIT,
        offset: Optional[Union[str, int]] = 0,
    ) -> List[Metric]:
        """Newest first; ties on timestamp are ordered by id, newest first.

        Offset pagination: rows ingested between two page requests shift
        the following pages.
        """
        if not device_id or not device_id.strip():
            raise ValidationError("device_id must not be empty")

        start = _optional_time(start_time, "start_time")
        end = _optional_time(end_time, "end_time")

        rows = self._store.query_range(
            device_id,
            start_time=start,
            end_time=end,
            limit=clamp_limit(limit),
            offset=clamp_offset(offset),
        )
        logger.debug(
            "[QUERY] device_id=%s start=%s end=%s rows=%d",
            device_id,
            start,
            end,
            len(rows),
        )
        return rows
