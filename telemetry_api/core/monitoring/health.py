"""Health checks del sistema."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import redis
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from telemetry_common.db import ping_database
from ..redis.connection import RedisConnection

logger = logging.getLogger(__name__)


@dataclass
class HealthStatus:
    """Estado de salud del sistema."""
    db_connected: bool
    redis_connected: bool
    db_error: Optional[str] = None
    redis_error: Optional[str] = None
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def healthy(self) -> bool:
        # Either store down means unhealthy; never report a partial outage as ok.
        return self.db_connected and self.redis_connected

    @property
    def message(self) -> str:
        if not self.db_connected:
            return "database connection failed"
        if not self.redis_connected:
            return "redis connection failed"
        return "service is running"

    def to_dict(self) -> dict:
        return {
            "status": "healthy" if self.healthy else "unhealthy",
            "message": self.message,
            "timestamp": self.checked_at,
            "database": "up" if self.db_connected else "down",
            "redis": "up" if self.redis_connected else "down",
        }


class HealthChecker:
    """Verifica el estado de salud del sistema."""

    def __init__(self, engine: Engine, redis_conn: RedisConnection):
        self._engine = engine
        self._redis = redis_conn

    def check_database(self) -> Optional[str]:
        """Returns None when the store answers, else the error class name."""
        try:
            ping_database(self._engine)
            return None
        except SQLAlchemyError as e:
            logger.warning("[HEALTH] Database ping failed: %s", type(e).__name__)
            return type(e).__name__

    def check_redis(self) -> Optional[str]:
        try:
            self._redis.ping()
            return None
        except redis.RedisError as e:
            logger.warning("[HEALTH] Redis ping failed: %s", type(e).__name__)
            return type(e).__name__

    def get_status(self) -> HealthStatus:
        db_error = self.check_database()
        redis_error = self.check_redis()
        return HealthStatus(
            db_connected=db_error is None,
            redis_connected=redis_error is None,
            db_error=db_error,
            redis_error=redis_error,
        )
