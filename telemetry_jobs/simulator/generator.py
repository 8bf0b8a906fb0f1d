"""Generación de lecturas sintéticas por dispositivo."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, List, Optional

STATUSES = ("normal", "warning", "error")

VOLTAGE_RANGE = (100.0, 240.0)
CURRENT_RANGE = (0.0, 100.0)
TEMPERATURE_RANGE = (0.0, 100.0)

# Probability that a reading gets a random status regardless of its values.
RANDOM_STATUS_RATE = 0.1


def _clamp(value: float, bounds: tuple) -> float:
    lo, hi = bounds
    return max(lo, min(hi, value))


def classify_status(voltage: float, current: float, temperature: float) -> str:
    status = "normal"
    if voltage < 110 or voltage > 230 or current > 90 or temperature > 80:
        status = "warning"
    if voltage < 105 or voltage > 235 or current > 95 or temperature > 90:
        status = "error"
    return status


@dataclass(frozen=True)
class DeviceSimulator:
    device_id: str
    base_voltage: float
    base_current: float
    base_temp: float

    def generate_metric(self, rng: random.Random, timestamp: Optional[str] = None) -> Dict[str, object]:
        """One reading around the device's base values: ±10 V, ±5 A, ±5 °C."""
        voltage = _clamp(self.base_voltage + (rng.random() * 20 - 10), VOLTAGE_RANGE)
        current = _clamp(self.base_current + (rng.random() * 10 - 5), CURRENT_RANGE)
        temperature = _clamp(self.base_temp + (rng.random() * 10 - 5), TEMPERATURE_RANGE)

        status = classify_status(voltage, current, temperature)
        if rng.random() < RANDOM_STATUS_RATE:
            status = rng.choice(STATUSES)

        payload: Dict[str, object] = {
            "voltage": round(voltage, 2),
            "current": round(current, 2),
            "temperature": round(temperature, 2),
            "status": status,
        }
        if timestamp is not None:
            payload["timestamp"] = timestamp
        return payload


def build_simulators(count: int) -> List[DeviceSimulator]:
    """device-001..device-NNN, each with different base values."""
    sims = []
    for i in range(count):
        sims.append(
            DeviceSimulator(
                device_id=f"device-{i + 1:03d}",
                base_voltage=200.0 + (i % 5) * 10,
                base_current=20.0 + (i % 4) * 15,
                base_temp=25.0 + (i % 6) * 10,
            )
        )
    return sims
