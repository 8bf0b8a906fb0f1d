"""Módulo de endpoints HTTP."""

from .cache_admin import router as cache_admin_router
from .devices import router as devices_router
from .health import router as health_router

__all__ = [
    "cache_admin_router",
    "devices_router",
    "health_router",
]
