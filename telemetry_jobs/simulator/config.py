"""Simulator configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, "").strip() or default)
    except ValueError:
        return default


@dataclass(frozen=True)
class SimulatorConfig:
    """Configuración del simulador de dispositivos."""
    api_url: str
    devices: int
    interval_seconds: float
    once: bool = False
    seed: Optional[int] = None
    health_retries: int = 30
    health_retry_seconds: float = 2.0
    request_timeout: float = 10.0


def config_defaults() -> dict:
    return {
        "api_url": os.getenv("API_URL", "http://app:8080"),
        "devices": _env_int("NUM_DEVICES", 8),
        "interval_seconds": float(_env_int("INTERVAL_SECONDS", 7)),
    }
