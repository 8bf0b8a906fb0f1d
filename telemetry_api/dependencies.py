"""Wiring of the shared pool/session into the services.

Everything is built once per process (in the app lifespan) and reached
from handlers through ``request.app.state``; nothing here is a module
global.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.engine import Engine

from .core.monitoring import HealthChecker
from .core.redis import RedisConnection
from .infrastructure.persistence.metric_store import MetricStore
from .services import (
    CacheAdmin,
    DeviceDirectory,
    IngestionService,
    LatestValueCache,
    QueryService,
)
from .services.latest_cache import DEFAULT_TTL_SECONDS


@dataclass
class TelemetryServices:
    engine: Engine
    redis: RedisConnection
    store: MetricStore
    latest: LatestValueCache
    ingestion: IngestionService
    query: QueryService
    devices: DeviceDirectory
    cache_admin: CacheAdmin
    health: HealthChecker

    @classmethod
    def build(
        cls,
        engine: Engine,
        redis_conn: RedisConnection,
        *,
        latest_ttl_seconds: int = DEFAULT_TTL_SECONDS,
    ) -> "TelemetryServices":
        store = MetricStore(engine)
        # LatestValueCache and CacheAdmin share one client, hence one keyspace.
        client = redis_conn.client
        latest = LatestValueCache(store, client, ttl_seconds=latest_ttl_seconds)
        return cls(
            engine=engine,
            redis=redis_conn,
            store=store,
            latest=latest,
            ingestion=IngestionService(store, latest),
            query=QueryService(store),
            devices=DeviceDirectory(store),
            cache_admin=CacheAdmin(client),
            health=HealthChecker(engine, redis_conn),
        )


def get_services(request: Request) -> TelemetryServices:
    return request.app.state.services


def get_ingestion_service(services: TelemetryServices = Depends(get_services)) -> IngestionService:
    return services.ingestion


def get_query_service(services: TelemetryServices = Depends(get_services)) -> QueryService:
    return services.query


def get_latest_cache(services: TelemetryServices = Depends(get_services)) -> LatestValueCache:
    return services.latest


def get_device_directory(services: TelemetryServices = Depends(get_services)) -> DeviceDirectory:
    return services.devices


def get_cache_admin(services: TelemetryServices = Depends(get_services)) -> CacheAdmin:
    return services.cache_admin


def get_health_checker(services: TelemetryServices = Depends(get_services)) -> HealthChecker:
    return services.health
