"""CacheAdmin - scan/get/set/delete directly over the shared Redis keyspace.

This is the same client LatestValueCache uses: an operator can inspect,
overwrite or evict ``device_metric:*:latest`` entries from here, bypassing
the cache-aside rules.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, ClassVar, Dict, Iterator, List, Optional, Tuple, Union

import redis

from ..errors import DependencyError, NotFoundError, UnsupportedTypeError, ValidationError
from ..schemas import (
    CacheDeleteOut,
    CacheScanOut,
    CacheSetOut,
    CacheValueOut,
    CacheValueType,
    ScoredMember,
)

logger = logging.getLogger(__name__)

DEFAULT_SCAN_LIMIT = 100
MAX_SCAN_LIMIT = 1000

# Redis TTL replies: -1 no expiry, -2 key missing.
_TTL_MISSING = -2


@dataclass(frozen=True)
class StringValue:
    type: ClassVar[CacheValueType] = CacheValueType.STRING
    value: str

    def to_json(self) -> str:
        return self.value


@dataclass(frozen=True)
class HashValue:
    type: ClassVar[CacheValueType] = CacheValueType.HASH
    fields: Dict[str, str]

    def to_json(self) -> Dict[str, str]:
        return dict(self.fields)


@dataclass(frozen=True)
class ListValue:
    type: ClassVar[CacheValueType] = CacheValueType.LIST
    items: List[str]

    def to_json(self) -> List[str]:
        return list(self.items)


@dataclass(frozen=True)
class SetMembersValue:
    type: ClassVar[CacheValueType] = CacheValueType.SET
    members: List[str]

    def to_json(self) -> List[str]:
        return list(self.members)


@dataclass(frozen=True)
class SortedSetValue:
    type: ClassVar[CacheValueType] = CacheValueType.ZSET
    members: List[Tuple[str, float]]

    def to_json(self) -> List[ScoredMember]:
        return [ScoredMember(member=m, score=s) for m, s in self.members]


CacheValue = Union[StringValue, HashValue, ListValue, SetMembersValue, SortedSetValue]


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: CacheValue
    ttl: int

    def to_out(self) -> CacheValueOut:
        return CacheValueOut(
            key=self.key,
            type=self.value.type,
            value=self.value.to_json(),
            ttl=self.ttl,
        )


def _decode_string(client: redis.Redis, key: str) -> Optional[CacheValue]:
    raw = client.get(key)
    return None if raw is None else StringValue(raw)


def _decode_hash(client: redis.Redis, key: str) -> Optional[CacheValue]:
    return HashValue(dict(client.hgetall(key)))


def _decode_list(client: redis.Redis, key: str) -> Optional[CacheValue]:
    return ListValue(list(client.lrange(key, 0, -1)))


def _decode_set(client: redis.Redis, key: str) -> Optional[CacheValue]:
    # Sorted so repeated reads of an unchanged set look the same.
    return SetMembersValue(sorted(client.smembers(key)))


def _decode_zset(client: redis.Redis, key: str) -> Optional[CacheValue]:
    pairs = client.zrange(key, 0, -1, withscores=True)
    return SortedSetValue([(m, float(s)) for m, s in pairs])


_DECODERS: Dict[str, Callable[[redis.Redis, str], Optional[CacheValue]]] = {
    CacheValueType.STRING.value: _decode_string,
    CacheValueType.HASH.value: _decode_hash,
    CacheValueType.LIST.value: _decode_list,
    CacheValueType.SET.value: _decode_set,
    CacheValueType.ZSET.value: _decode_zset,
}


def clamp_scan_limit(value: Optional[Union[str, int]]) -> int:
    try:
        limit = int(value) if value is not None else DEFAULT_SCAN_LIMIT
    except (TypeError, ValueError):
        return DEFAULT_SCAN_LIMIT
    if limit <= 0 or limit > MAX_SCAN_LIMIT:
        return DEFAULT_SCAN_LIMIT
    return limit


def parse_cursor(value: Optional[Union[str, int]]) -> int:
    try:
        cursor = int(value) if value is not None else 0
    except (TypeError, ValueError):
        return 0
    return cursor if cursor >= 0 else 0


@contextmanager
def _cache_errors(operation: str, key: str = "") -> Iterator[None]:
    try:
        yield
    except redis.RedisError as e:
        logger.exception("[CACHE-ADMIN] %s failed key=%s err=%s", operation, key, type(e).__name__)
        raise DependencyError("cache unavailable", details=type(e).__name__) from e


def _require_key(key: str) -> str:
    if not key:
        raise ValidationError("key must not be empty")
    return key


class CacheAdmin:
    def __init__(self, client: redis.Redis):
        self._client = client

    def scan_keys(
        self,
        pattern: Optional[str] = "*",
        cursor: Optional[Union[str, int]] = 0,
        limit: Optional[Union[str, int]] = DEFAULT_SCAN_LIMIT,
    ) -> CacheScanOut:
        """Resumable SCAN that never returns more than ``limit`` keys.

        Stops once ``limit`` keys are collected or the server cursor wraps
        to 0. A batch that would overflow the page is left for the next
        call and ``next_cursor`` points at it, so nothing is skipped. COUNT
        is only a hint: when the very first batch alone exceeds ``limit``
        it is cut, and the keys past the cut are not returned by this scan.
        """
        pattern = pattern or "*"
        start = parse_cursor(cursor)
        limit_v = clamp_scan_limit(limit)

        keys: List[str] = []
        next_cursor = start
        with _cache_errors("scan"):
            while True:
                batch_cursor = next_cursor
                next_cursor, batch = self._client.scan(
                    cursor=batch_cursor, match=pattern, count=limit_v
                )
                room = limit_v - len(keys)
                if len(batch) > room:
                    if keys:
                        next_cursor = batch_cursor
                    else:
                        logger.warning(
                            "[CACHE-ADMIN] scan batch of %d cut to limit=%d pattern=%s",
                            len(batch),
                            limit_v,
                            pattern,
                        )
                        keys.extend(batch[:room])
                    break
                keys.extend(batch)
                if next_cursor == 0 or len(keys) >= limit_v:
                    break

        return CacheScanOut(
            pattern=pattern,
            count=len(keys),
            keys=keys,
            cursor=start,
            next_cursor=int(next_cursor),
            has_more=int(next_cursor) != 0,
            limit=limit_v,
            scanned=len(keys),
        )

    def get_value(self, key: str) -> CacheEntry:
        _require_key(key)
        with _cache_errors("get", key):
            key_type = self._client.type(key)
            if key_type == "none":
                raise NotFoundError("key does not exist", details={"key": key})

            decoder = _DECODERS.get(key_type)
            if decoder is None:
                raise UnsupportedTypeError(
                    "unsupported key type", details={"key": key, "type": str(key_type)}
                )

            value = decoder(self._client, key)
            ttl = self._client.ttl(key)

        # Expired between the type probe and the read.
        if value is None or ttl == _TTL_MISSING:
            raise NotFoundError("key does not exist", details={"key": key})
        return CacheEntry(key=key, value=value, ttl=int(ttl))

    def set_value(self, key: str, value: str, ttl: Optional[int] = None) -> CacheSetOut:
        """Upserts a string. ``ttl > 0`` sets an expiry; otherwise the key persists."""
        _require_key(key)
        with _cache_errors("set", key):
            if ttl is not None and ttl > 0:
                self._client.set(key, value, ex=int(ttl))
            else:
                self._client.set(key, value)
            remaining = self._client.ttl(key)

        logger.info("[CACHE-ADMIN] set key=%s ttl=%s", key, remaining)
        return CacheSetOut(key=key, value=value, ttl=int(remaining))

    def delete_key(self, key: str) -> CacheDeleteOut:
        _require_key(key)
        with _cache_errors("delete", key):
            if not self._client.exists(key):
                raise NotFoundError("key does not exist", details={"key": key})
            deleted = self._client.delete(key)

        logger.info("[CACHE-ADMIN] deleted key=%s count=%s", key, deleted)
        return CacheDeleteOut(key=key, deleted=int(deleted))
