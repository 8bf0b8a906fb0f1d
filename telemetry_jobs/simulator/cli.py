"""CLI entry point for the device simulator."""

from __future__ import annotations

import argparse
import logging

from telemetry_common.logging_setup import configure_logging

from .config import SimulatorConfig, config_defaults
from .runner import ApiUnavailable, run

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    configure_logging("INFO")

    defaults = config_defaults()
    p = argparse.ArgumentParser(description="Synthetic power readings for N devices")
    p.add_argument("--api-url", default=defaults["api_url"])
    p.add_argument("--devices", type=int, default=defaults["devices"])
    p.add_argument("--interval-seconds", type=float, default=defaults["interval_seconds"])
    p.add_argument("--seed", type=int, default=None, help="seed for reproducible readings")
    p.add_argument("--once", action="store_true", help="send a single round and exit")
    args = p.parse_args(argv)

    cfg = SimulatorConfig(
        api_url=args.api_url,
        devices=max(1, args.devices),
        interval_seconds=max(0.1, args.interval_seconds),
        once=bool(args.once),
        seed=args.seed,
    )

    logger.info(
        "Simulating %d devices every %.1fs against %s",
        cfg.devices,
        cfg.interval_seconds,
        cfg.api_url,
    )
    try:
        run(cfg)
    except ApiUnavailable as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Simulator stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
