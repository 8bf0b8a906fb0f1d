"""SQL for device_metrics reads and writes.

The range query is assembled from (predicate template, bound value)
pairs. Values only ever travel as bound parameters; the templates are
fixed strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import bindparam, text
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.sql.selectable import TextualSelect

from ..infrastructure.persistence.schema import device_metrics

_c = device_metrics.c

METRIC_COLUMNS = (
    _c.id,
    _c.device_id,
    _c.voltage,
    _c.current,
    _c.temperature,
    _c.status,
    _c.timestamp,
    _c.created_at,
)

_SELECT_LIST = 'id, device_id, voltage, "current", temperature, status, "timestamp", created_at'

_TIMESTAMP_TYPE = _c.timestamp.type


@dataclass(frozen=True)
class RangeFilter:
    template: str
    param: str
    value: Any
    timestamp_typed: bool = False


def build_range_filters(
    device_id: str,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
) -> List[RangeFilter]:
    filters = [RangeFilter("device_id = :device_id", "device_id", device_id)]
    if start_time is not None:
        filters.append(RangeFilter('"timestamp" >= :start_time', "start_time", start_time, True))
    if end_time is not None:
        filters.append(RangeFilter('"timestamp" <= :end_time', "end_time", end_time, True))
    return filters


def build_range_query(
    device_id: str,
    *,
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    limit: int,
    offset: int,
) -> Tuple[TextualSelect, Dict[str, Any]]:
    """Returns the statement and its parameters for one page of device history."""
    filters = build_range_filters(device_id, start_time, end_time)
    where = " AND ".join(f.template for f in filters)

    stmt: TextClause = text(
        f"""
        SELECT {_SELECT_LIST}
        FROM device_metrics
        WHERE {where}
        ORDER BY "timestamp" DESC, id DESC
        LIMIT :limit OFFSET :offset
        """
    )
    typed = [bindparam(f.param, type_=_TIMESTAMP_TYPE) for f in filters if f.timestamp_typed]
    if typed:
        stmt = stmt.bindparams(*typed)

    params: Dict[str, Any] = {f.param: f.value for f in filters}
    params["limit"] = int(limit)
    params["offset"] = int(offset)
    return stmt.columns(*METRIC_COLUMNS), params


INSERT_METRIC = (
    text(
        f"""
        INSERT INTO device_metrics (device_id, voltage, "current", temperature, status, "timestamp")
        VALUES (:device_id, :voltage, :current, :temperature, :status, :timestamp)
        RETURNING {_SELECT_LIST}
        """
    )
    .bindparams(bindparam("timestamp", type_=_TIMESTAMP_TYPE))
    .columns(*METRIC_COLUMNS)
)

SELECT_LATEST_METRIC = text(
    f"""
    SELECT {_SELECT_LIST}
    FROM device_metrics
    WHERE device_id = :device_id
    ORDER BY "timestamp" DESC, id DESC
    LIMIT 1
    """
).columns(*METRIC_COLUMNS)

# One row per device: the row with the greatest timestamp.
SELECT_DEVICE_SUMMARIES = text(
    """
    SELECT device_id, "timestamp" AS last_updated, status AS latest_status
    FROM (
      SELECT
        device_id,
        "timestamp",
        status,
        ROW_NUMBER() OVER (
          PARTITION BY device_id
          ORDER BY "timestamp" DESC, id DESC
        ) AS rn
      FROM device_metrics
    ) ranked
    WHERE rn = 1
    ORDER BY device_id
    """
).columns(
    device_id=_c.device_id.type,
    last_updated=_TIMESTAMP_TYPE,
    latest_status=_c.status.type,
)
