"""Cache-aside accessor for the most recent reading of each device.

Flow for ``get_latest``:

1. GET ``device_metric:{device_id}:latest``; a well-formed hit is returned
   as ``source=cache``.
2. A hit that does not parse, or a failing GET, counts as a miss.
3. On a miss the newest row (by timestamp) is read from MetricStore;
   none means NotFoundError.
4. The row is written back with a TTL. That write is best effort.
5. The row is returned as ``source=database``.

Staleness is bounded by the TTL or the next ingestion for the device,
whichever comes first. Concurrent misses are not coalesced, and a reader
that loaded the store before a writer committed can repopulate the key
with the older row after the writer's invalidation; that entry lives
until the TTL expires.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import redis
from pydantic import ValidationError as SnapshotError

from ..errors import NotFoundError
from ..infrastructure.persistence.metric_store import MetricStore
from ..metrics import CACHE_ERRORS, LATEST_LOOKUPS
from ..schemas import Metric, MetricSource

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60


def latest_cache_key(device_id: str) -> str:
    return f"device_metric:{device_id}:latest"


class LatestValueCache:
    def __init__(
        self,
        store: MetricStore,
        client: redis.Redis,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ):
        self._store = store
        self._client = client
        self._ttl = int(ttl_seconds)

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    def get_latest(self, device_id: str) -> Tuple[Metric, MetricSource]:
        key = latest_cache_key(device_id)

        cached = self._read_cached(key)
        if cached is not None:
            LATEST_LOOKUPS.labels(source="cache").inc()
            return cached, MetricSource.CACHE

        metric = self._store.latest(device_id)
        if metric is None:
            LATEST_LOOKUPS.labels(source="not_found").inc()
            raise NotFoundError("no metrics found for device", details={"device_id": device_id})

        self._write_cached(key, metric)
        LATEST_LOOKUPS.labels(source="database").inc()
        return metric, MetricSource.DATABASE

    def invalidate(self, device_id: str) -> bool:
        """Deletes the device's entry. Returns False if Redis refused."""
        key = latest_cache_key(device_id)
        try:
            self._client.delete(key)
            return True
        except redis.RedisError as e:
            CACHE_ERRORS.labels(operation="invalidate").inc()
            logger.warning("[LATEST] Invalidate failed key=%s err=%s", key, type(e).__name__)
            return False

    def _read_cached(self, key: str) -> Optional[Metric]:
        try:
            raw = self._client.get(key)
        except redis.RedisError as e:
            CACHE_ERRORS.labels(operation="read").inc()
            logger.warning("[LATEST] Cache read failed key=%s err=%s", key, type(e).__name__)
            return None

        if raw is None:
            return None

        try:
            return Metric.model_validate_json(raw)
        except SnapshotError:
            # Corrupt or foreign value: fall through to the store, which overwrites it.
            CACHE_ERRORS.labels(operation="decode").inc()
            logger.warning("[LATEST] Discarding undecodable cache entry key=%s", key)
            return None

    def _write_cached(self, key: str, metric: Metric) -> None:
        try:
            self._client.set(key, metric.model_dump_json(), ex=self._ttl)
        except redis.RedisError as e:
            CACHE_ERRORS.labels(operation="write").inc()
            logger.warning("[LATEST] Cache write failed key=%s err=%s", key, type(e).__name__)
