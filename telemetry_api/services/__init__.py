"""Servicios del núcleo de telemetría.

- IngestionService: valida, persiste e invalida el cache
- QueryService: historial paginado por dispositivo
- LatestValueCache: última lectura con cache-aside
- DeviceDirectory: dispositivos derivados de las métricas
- CacheAdmin: administración genérica del keyspace de Redis
"""

from .cache_admin import CacheAdmin, CacheEntry
from .devices import DeviceDirectory
from .ingestion import IngestionService
from .latest_cache import LatestValueCache, latest_cache_key
from .query import QueryService, clamp_limit, clamp_offset

__all__ = [
    "CacheAdmin",
    "CacheEntry",
    "DeviceDirectory",
    "IngestionService",
    "LatestValueCache",
    "latest_cache_key",
    "QueryService",
    "clamp_limit",
    "clamp_offset",
]
