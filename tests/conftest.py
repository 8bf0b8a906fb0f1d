"""Fixtures compartidos: SQLite en memoria y un Redis falso con reloj controlable."""

from __future__ import annotations

import fnmatch
from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from telemetry_api.core.redis import RedisConnection
from telemetry_api.infrastructure.persistence import ensure_schema
from telemetry_api.infrastructure.persistence.metric_store import MetricStore
from telemetry_api.main import create_app
from telemetry_api.services import (
    CacheAdmin,
    DeviceDirectory,
    IngestionService,
    LatestValueCache,
    QueryService,
)
from telemetry_common.config import Settings


class FakeRedis:
    """In-memory stand-in for the subset of redis.Redis the service uses.

    Values are returned as ``str`` (the client runs with
    ``decode_responses=True``). Expiry follows ``self.now``, which tests
    move forward with ``advance``.
    """

    def __init__(self):
        self.now = 1_700_000_000.0
        self._data: Dict[str, Tuple[str, Any]] = {}
        self._expires: Dict[str, float] = {}

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _purge(self, key: str) -> None:
        exp = self._expires.get(key)
        if exp is not None and exp <= self.now:
            self._data.pop(key, None)
            self._expires.pop(key, None)

    def _live_keys(self) -> List[str]:
        for key in list(self._data):
            self._purge(key)
        return sorted(self._data)

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        pass

    # strings
    def get(self, key: str) -> Optional[str]:
        self._purge(key)
        entry = self._data.get(key)
        if entry is None:
            return None
        kind, value = entry
        if kind != "string":
            raise TypeError("WRONGTYPE")
        return value

    def set(self, key: str, value: Any, ex: Optional[int] = None) -> bool:
        self._data[key] = ("string", str(value))
        self._expires.pop(key, None)
        if ex is not None:
            self._expires[key] = self.now + ex
        return True

    # generic
    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            self._purge(key)
            if key in self._data:
                del self._data[key]
                self._expires.pop(key, None)
                removed += 1
        return removed

    def exists(self, *keys: str) -> int:
        count = 0
        for key in keys:
            self._purge(key)
            count += key in self._data
        return count

    def type(self, key: str) -> str:
        self._purge(key)
        entry = self._data.get(key)
        return "none" if entry is None else entry[0]

    def ttl(self, key: str) -> int:
        self._purge(key)
        if key not in self._data:
            return -2
        exp = self._expires.get(key)
        if exp is None:
            return -1
        return int(round(exp - self.now))

    def scan(self, cursor: int = 0, match: Optional[str] = None, count: Optional[int] = None):
        keys = [k for k in self._live_keys() if match is None or fnmatch.fnmatchcase(k, match)]
        count = count or 10
        batch = keys[cursor:cursor + count]
        next_cursor = cursor + count
        if next_cursor >= len(keys):
            next_cursor = 0
        return next_cursor, batch

    # other types, for admin tests
    def hset(self, key: str, mapping: Dict[str, str]) -> int:
        self._data.setdefault(key, ("hash", {}))[1].update(mapping)
        return len(mapping)

    def hgetall(self, key: str) -> Dict[str, str]:
        self._purge(key)
        return dict(self._data.get(key, ("hash", {}))[1])

    def rpush(self, key: str, *values: str) -> int:
        items = self._data.setdefault(key, ("list", []))[1]
        items.extend(values)
        return len(items)

    def lrange(self, key: str, start: int, end: int) -> List[str]:
        self._purge(key)
        items = self._data.get(key, ("list", []))[1]
        return list(items[start:] if end == -1 else items[start:end + 1])

    def sadd(self, key: str, *members: str) -> int:
        self._data.setdefault(key, ("set", set()))[1].update(members)
        return len(members)

    def smembers(self, key: str) -> set:
        self._purge(key)
        return set(self._data.get(key, ("set", set()))[1])

    def zadd(self, key: str, mapping: Dict[str, float]) -> int:
        self._data.setdefault(key, ("zset", {}))[1].update(mapping)
        return len(mapping)

    def zrange(self, key: str, start: int, end: int, withscores: bool = False):
        self._purge(key)
        scores = self._data.get(key, ("zset", {}))[1]
        ordered = sorted(scores.items(), key=lambda kv: (kv[1], kv[0]))
        ordered = ordered[start:] if end == -1 else ordered[start:end + 1]
        if withscores:
            return [(m, float(s)) for m, s in ordered]
        return [m for m, _ in ordered]

    def xadd(self, key: str, fields: Dict[str, str]) -> str:
        # Only used to create a key of a type the admin does not decode.
        self._data.setdefault(key, ("stream", []))[1].append(fields)
        return "0-1"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite+pysqlite:///:memory:",
        db_pool_size=1,
        db_max_overflow=0,
        db_pool_timeout=5,
        db_pool_recycle=300,
        db_auto_create_schema=False,
        redis_url="redis://localhost:6379/0",
        latest_cache_ttl_seconds=60,
        app_port=8080,
        app_env="test",
        log_level="INFO",
    )


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def redis_conn(fake_redis) -> RedisConnection:
    return RedisConnection(client=fake_redis)


@pytest.fixture
def store(engine) -> MetricStore:
    return MetricStore(engine)


@pytest.fixture
def latest_cache(store, fake_redis) -> LatestValueCache:
    return LatestValueCache(store, fake_redis, ttl_seconds=60)


@pytest.fixture
def ingestion(store, latest_cache) -> IngestionService:
    return IngestionService(store, latest_cache)


@pytest.fixture
def query_service(store) -> QueryService:
    return QueryService(store)


@pytest.fixture
def directory(store) -> DeviceDirectory:
    return DeviceDirectory(store)


@pytest.fixture
def cache_admin(fake_redis) -> CacheAdmin:
    return CacheAdmin(fake_redis)


@pytest.fixture
def client(settings, engine, redis_conn):
    app = create_app(settings, engine=engine, redis_conn=redis_conn)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def valid_reading() -> Dict[str, Any]:
    return {
        "voltage": 215.5,
        "current": 40.2,
        "temperature": 55.0,
        "status": "normal",
    }
