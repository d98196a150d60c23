#!/usr/bin/env python3
"""
Simple TCP device scenario: device -> manager -> model store -> dashboard application.

Usage:
  python scripts/run_scenario.py                      # config/config.yaml or the example
  python scripts/run_scenario.py my.yaml --cycles 3   # three process steps
  python scripts/run_scenario.py --memory --debug     # in-process store, verbose
"""

import argparse
import logging
import os
import sys

# Project root: always resolve relative to script location, not cwd
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)
os.chdir(_PROJECT_ROOT)

logger = logging.getLogger("run_scenario")


def run_cycles(deployment, manager_name: str, device_name: str, app_name: str, cycles: int) -> int:
    """Drive the device through `cycles` process steps; return 0 if every status was observed."""
    from devicelink.core.errors import WaitTimedOut
    from devicelink.core.status import DeviceStatus

    device = deployment.get(device_name)
    app = deployment.get(app_name)
    try:
        # Device updates status to ready
        device.initialize()
        rec = app.wait_for_status(DeviceStatus.IDLE, device.invocation_counter)
        logger.info("observed %s", rec)
        for _ in range(cycles):
            start = device.invocation_counter
            device.service_running()
            logger.info("observed %s", app.wait_for_status(DeviceStatus.EXECUTE, start))
            device.service_completed()
            logger.info("observed %s", app.wait_for_status(DeviceStatus.COMPLETE, start))
            # Device ready again, next process step may be invoked
            device.reset_completed()
            logger.info("observed %s", app.wait_for_status(DeviceStatus.IDLE, start + 1))
    except WaitTimedOut as e:
        logger.error("status not observed: %s", e)
        return 1
    manager = deployment.get(manager_name)
    manager.metrics.log_snapshot()
    logger.info(
        "done: status=%s invocation_counter=%s",
        app.get_device_status(),
        app.get_device_invocation_counter(),
    )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the simple TCP device scenario")
    parser.add_argument("config", nargs="?", default=None, help="YAML config path")
    parser.add_argument("--cycles", type=int, default=1, help="process steps to run (default 1)")
    parser.add_argument("--memory", action="store_true", help="in-process model store instead of HTTP server")
    parser.add_argument("--debug", action="store_true", help="DEBUG logging")
    args = parser.parse_args()

    from devicelink.config.settings import (
        get_device_config,
        get_logging_config,
        get_manager_config,
        get_reader_config,
        read_config,
    )
    from devicelink.core.logging_utils import setup_logging
    from devicelink.deployment import build_scenario

    config, path = read_config(args.config)
    log_cfg = get_logging_config(config)
    setup_logging("DEBUG" if args.debug else log_cfg["level"], color=log_cfg["color"])
    logger.info("config: %s", path)
    if args.memory:
        config.setdefault("model_store", {})["backend"] = "memory"

    with build_scenario(config) as deployment:
        return run_cycles(
            deployment,
            get_manager_config(config)["name"],
            get_device_config(config)["name"],
            get_reader_config(config)["name"],
            args.cycles,
        )


if __name__ == "__main__":
    sys.exit(main())
