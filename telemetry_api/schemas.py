from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field


class MetricStatus(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    ERROR = "error"


class MetricSource(str, Enum):
    CACHE = "cache"
    DATABASE = "database"


class CacheValueType(str, Enum):
    STRING = "string"
    HASH = "hash"
    LIST = "list"
    SET = "set"
    ZSET = "zset"


class Metric(BaseModel):
    # One persisted reading; also the JSON snapshot stored in the latest-value cache.
    id: int
    device_id: str
    voltage: float
    current: float
    temperature: float
    status: MetricStatus
    timestamp: datetime
    created_at: datetime


class MetricCreateIn(BaseModel):
    # Ranges are checked by IngestionService so non-HTTP callers get the same rules.
    voltage: float
    current: float
    temperature: float
    status: str
    timestamp: Optional[str] = None


class MetricCreatedOut(BaseModel):
    message: str = "metric created"
    data: Metric


class MetricRangeOut(BaseModel):
    device_id: str
    count: int
    data: List[Metric] = Field(default_factory=list)


class LatestMetricOut(BaseModel):
    data: Metric
    source: MetricSource


class DeviceSummary(BaseModel):
    device_id: str
    last_updated: datetime
    latest_status: MetricStatus


class DeviceListOut(BaseModel):
    count: int
    devices: List[DeviceSummary] = Field(default_factory=list)


class ScoredMember(BaseModel):
    member: str
    score: float


class CacheScanOut(BaseModel):
    pattern: str
    count: int
    keys: List[str] = Field(default_factory=list)
    cursor: int
    next_cursor: int
    has_more: bool
    limit: int
    scanned: int


class CacheValueOut(BaseModel):
    key: str
    type: CacheValueType
    value: Union[str, Dict[str, str], List[ScoredMember], List[str]]
    ttl: int


class CacheSetIn(BaseModel):
    value: str = Field(min_length=1)
    ttl: Optional[int] = None


class CacheSetOut(BaseModel):
    message: str = "key set"
    key: str
    value: str
    ttl: int


class CacheDeleteOut(BaseModel):
    message: str = "key deleted"
    key: str
    deleted: int


class HealthOut(BaseModel):
    status: str
    message: str
    timestamp: datetime
    database: str
    redis: str


class ErrorOut(BaseModel):
    error: str
    details: Optional[Union[str, List[str], Dict[str, str]]] = None
