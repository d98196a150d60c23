#!/usr/bin/env python3
"""Standalone model server: GET/PUT /devices/{id}/status on model_server.host:port from config."""

import os
import sys

# Project root: same as run_scenario.py
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _PROJECT_ROOT)
os.chdir(_PROJECT_ROOT)


def main() -> None:
    from devicelink.config.settings import get_logging_config, read_config
    from devicelink.core.logging_utils import setup_logging
    from devicelink.model_server.app import run_server

    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    config_path = args[0] if args else None
    if config_path and not os.path.isabs(config_path):
        config_path = os.path.join(_PROJECT_ROOT, config_path)
    config, _ = read_config(config_path)
    log_cfg = get_logging_config(config)
    setup_logging("DEBUG" if "--debug" in sys.argv else log_cfg["level"], color=log_cfg["color"])
    run_server(config)


if __name__ == "__main__":
    main()
