"""Conexión a Redis compartida por el cache de última lectura y el admin."""

from __future__ import annotations

import logging
from typing import Optional

import redis

from telemetry_common.config import mask_url

logger = logging.getLogger(__name__)


class RedisConnection:
    """Owns the single Redis client every request shares.

    redis-py multiplexes calls over its own connection pool and reconnects
    on failure; nothing above this layer retries.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        client: Optional[redis.Redis] = None,
    ):
        self._url = url
        self._client: Optional[redis.Redis] = client
        self._connected = client is not None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(
                self._url,
                decode_responses=True,
                socket_timeout=5.0,
                socket_connect_timeout=5.0,
                health_check_interval=30,
            )
        return self._client

    @property
    def is_connected(self) -> bool:
        return self._connected

    def connect(self) -> bool:
        """Builds the client and pings it. A failed ping is logged, not raised."""
        try:
            self.client.ping()
            self._connected = True
            logger.info("[REDIS] Connected: %s", mask_url(self._url))
        except redis.RedisError as e:
            self._connected = False
            logger.warning("[REDIS] Connection failed: %s", e)
        return self._connected

    def ping(self) -> None:
        """Raises ``redis.RedisError`` when the server does not answer."""
        self.client.ping()
        self._connected = True

    def close(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
            except redis.RedisError as e:
                logger.warning("[REDIS] Close failed: %s", e)
        self._connected = False
