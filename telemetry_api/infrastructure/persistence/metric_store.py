"""MetricStore - durable storage for device_metrics rows."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, List, Mapping, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ...core.validation import ValidatedReading
from ...errors import DependencyError, ValidationError
from ...queries.metric_queries import (
    INSERT_METRIC,
    SELECT_DEVICE_SUMMARIES,
    SELECT_LATEST_METRIC,
    build_range_query,
)
from ...schemas import DeviceSummary, Metric

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values; everything is written in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def row_to_metric(row: Mapping[str, Any]) -> Metric:
    return Metric(
        id=int(row["id"]),
        device_id=str(row["device_id"]),
        voltage=float(row["voltage"]),
        current=float(row["current"]),
        temperature=float(row["temperature"]),
        status=str(row["status"]),
        timestamp=_as_utc(row["timestamp"]),
        created_at=_as_utc(row["created_at"]),
    )


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except IntegrityError as e:
        # CHECK constraints: second line of defense behind the validator.
        logger.warning("[DB] %s rejected by constraints: %s", operation, type(e.orig).__name__)
        raise ValidationError(
            "metric rejected by store constraints",
            details=str(e.orig).splitlines()[0] if e.orig is not None else None,
        ) from e
    except SQLAlchemyError as e:
        logger.exception("[DB] %s failed err=%s", operation, type(e).__name__)
        raise DependencyError("metric store unavailable", details=type(e).__name__) from e


class MetricStore:
    """Reads and writes device_metrics through a pooled engine.

    Every call borrows one connection for its duration and returns it to
    the pool on exit, on success or failure. Calls are single-attempt.
    """

    def __init__(self, engine: Engine):
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def insert(self, reading: ValidatedReading) -> Metric:
        """Inserts one row and returns it as stored (id and created_at included).

        The transaction is committed when this returns.
        """
        with _store_errors("insert"):
            with self._engine.begin() as conn:
                row = conn.execute(
                    INSERT_METRIC,
                    {
                        "device_id": reading.device_id,
                        "voltage": reading.voltage,
                        "current": reading.current,
                        "temperature": reading.temperature,
                        "status": reading.status.value,
                        "timestamp": reading.timestamp,
                    },
                ).mappings().one()
        return row_to_metric(row)

    def query_range(
        self,
        device_id: str,
        *,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        limit: int,
        offset: int,
    ) -> List[Metric]:
        stmt, params = build_range_query(
            device_id,
            start_time=start_time,
            end_time=end_time,
            limit=limit,
            offset=offset,
        )
        with _store_errors("query_range"):
            with self._engine.connect() as conn:
                rows = conn.execute(stmt, params).mappings().all()
        return [row_to_metric(r) for r in rows]

    def latest(self, device_id: str) -> Optional[Metric]:
        with _store_errors("latest"):
            with self._engine.connect() as conn:
                row = conn.execute(SELECT_LATEST_METRIC, {"device_id": device_id}).mappings().first()
        if row is None:
            return None
        return row_to_metric(row)

    def device_summaries(self) -> List[DeviceSummary]:
        with _store_errors("device_summaries"):
            with self._engine.connect() as conn:
                rows = conn.execute(SELECT_DEVICE_SUMMARIES).mappings().all()
        return [
            DeviceSummary(
                device_id=str(r["device_id"]),
                last_updated=_as_utc(r["last_updated"]),
                latest_status=str(r["latest_status"]),
            )
            for r in rows
        ]
