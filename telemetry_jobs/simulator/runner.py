"""Envío periódico de lecturas simuladas a la API."""

from __future__ import annotations

import logging
import random
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

import requests

from .config import SimulatorConfig
from .generator import DeviceSimulator, build_simulators

logger = logging.getLogger(__name__)


class ApiUnavailable(Exception):
    pass


def wait_for_api(
    session: requests.Session,
    cfg: SimulatorConfig,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Polls /health until it answers 200; raises ApiUnavailable after the last retry."""
    url = f"{cfg.api_url.rstrip('/')}/health"
    for attempt in range(1, cfg.health_retries + 1):
        try:
            resp = session.get(url, timeout=cfg.request_timeout)
            if resp.status_code == 200:
                logger.info("API ready at %s", cfg.api_url)
                return
            logger.info("API not ready (status=%s) attempt=%d", resp.status_code, attempt)
        except requests.RequestException as e:
            logger.info("API not reachable attempt=%d err=%s", attempt, type(e).__name__)
        if attempt < cfg.health_retries:
            sleep(cfg.health_retry_seconds)
    raise ApiUnavailable(f"API at {cfg.api_url} did not become healthy")


def send_metric(
    session: requests.Session,
    cfg: SimulatorConfig,
    sim: DeviceSimulator,
    metric: dict,
) -> None:
    url = f"{cfg.api_url.rstrip('/')}/api/v1/devices/{sim.device_id}/metrics"
    resp = session.post(url, json=metric, timeout=cfg.request_timeout)
    if resp.status_code != 201:
        raise requests.HTTPError(f"unexpected status {resp.status_code}", response=resp)


def run_round(
    session: requests.Session,
    cfg: SimulatorConfig,
    simulators: List[DeviceSimulator],
    rng: random.Random,
) -> int:
    """Sends one reading per device; returns how many were accepted."""
    sent = 0
    for sim in simulators:
        ts = datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")
        metric = sim.generate_metric(rng, timestamp=ts)
        try:
            send_metric(session, cfg, sim, metric)
            sent += 1
            logger.info(
                "Device %s sent: voltage=%.2fV current=%.2fA temperature=%.2fC status=%s",
                sim.device_id,
                metric["voltage"],
                metric["current"],
                metric["temperature"],
                metric["status"],
            )
        except requests.RequestException as e:
            logger.warning("Device %s send failed: %s", sim.device_id, e)
    return sent


def run(
    cfg: SimulatorConfig,
    *,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Runs until interrupted, or for one round with ``cfg.once``.

    A session created here is closed on exit; a passed-in one is left open.
    """
    if session is None:
        with requests.Session() as own_session:
            _run(cfg, own_session, sleep)
    else:
        _run(cfg, session, sleep)


def _run(
    cfg: SimulatorConfig,
    session: requests.Session,
    sleep: Callable[[float], None],
) -> None:
    rng = random.Random(cfg.seed)
    simulators = build_simulators(cfg.devices)

    for sim in simulators:
        logger.info(
            "Device %s initialized (voltage=%.2fV current=%.2fA temperature=%.2fC)",
            sim.device_id,
            sim.base_voltage,
            sim.base_current,
            sim.base_temp,
        )

    wait_for_api(session, cfg, sleep=sleep)

    # First round goes out immediately, then one per interval.
    while True:
        sent = run_round(session, cfg, simulators, rng)
        logger.info("Round completed: %d/%d accepted", sent, len(simulators))
        if cfg.once:
            return
        sleep(cfg.interval_seconds)
