"""Device simulator - synthetic load for the telemetry API.

Modules:
- config: SimulatorConfig dataclass
- generator: per-device reading generation
- runner: health wait + periodic sending
- cli: CLI entry point (main)
"""

from .config import SimulatorConfig
from .generator import DeviceSimulator, build_simulators, classify_status
from .runner import run, run_round

__all__ = [
    "SimulatorConfig",
    "DeviceSimulator",
    "build_simulators",
    "classify_status",
    "run",
    "run_round",
]
