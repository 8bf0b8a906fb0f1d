"""IngestionService - validates, persists and invalidates."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Union

from ..core.validation import validate_reading
from ..errors import ValidationError
from ..infrastructure.persistence.metric_store import MetricStore
from ..metrics import METRICS_INGESTED
from ..schemas import Metric
from .latest_cache import LatestValueCache

logger = logging.getLogger(__name__)


class IngestionService:
    """Creates one Metric per call; identical readings are not deduplicated."""

    def __init__(self, store: MetricStore, latest_cache: LatestValueCache):
        self._store = store
        self._latest = latest_cache

    def ingest(
        self,
        device_id: str,
        voltage: float,
        current: float,
        temperature: float,
        status: str,
        timestamp: Optional[Union[str, datetime]] = None,
    ) -> Metric:
        try:
            reading = validate_reading(
                device_id=device_id,
                voltage=voltage,
                current=current,
                temperature=temperature,
                status=status,
                timestamp=timestamp,
            )
            metric = self._store.insert(reading)
        except ValidationError:
            METRICS_INGESTED.labels(status="rejected").inc()
            raise
        except Exception:
            METRICS_INGESTED.labels(status="failed").inc()
            raise

        # Only after the insert committed; a failure here leaves the entry to expire.
        self._latest.invalidate(metric.device_id)

        METRICS_INGESTED.labels(status="created").inc()
        logger.info(
            "[INGEST] device_id=%s id=%s status=%s ts=%s",
            metric.device_id,
            metric.id,
            metric.status.value,
            metric.timestamp.isoformat(),
        )
        return metric
