from __future__ import annotations

from typing import List

from ..infrastructure.persistence.metric_store import MetricStore
from ..schemas import DeviceSummary


class DeviceDirectory:
    """Devices exist only as distinct device_id values in device_metrics.

    Each summary reflects the device's row with the greatest timestamp.
    The query scans every stored metric; there is no materialized registry.
    """

    def __init__(self, store: MetricStore):
        self._store = store

    def list_devices(self) -> List[DeviceSummary]:
        return self._store.device_summaries()
