"""Redis layer - conexión compartida."""

from .connection import RedisConnection

__all__ = ["RedisConnection"]
