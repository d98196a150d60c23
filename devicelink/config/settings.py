"""Unified config: manager, device, reader, model_store, model_server, directory, logging.

Defaults: loaded from devicelink/config/config.yaml.example (single source of truth, no code-level defaults).
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

_EXAMPLE_PATH = Path(__file__).resolve().parent / "config.yaml.example"

# Lazy-loaded example config (single source of truth for defaults)
_EXAMPLE_CONFIG: Optional[Dict[str, Any]] = None


def _load_example_config() -> Dict[str, Any]:
    """Load config.yaml.example as defaults. No code-level defaults."""
    global _EXAMPLE_CONFIG
    if _EXAMPLE_CONFIG is None:
        with open(_EXAMPLE_PATH, encoding="utf-8") as f:
            _EXAMPLE_CONFIG = yaml.safe_load(f) or {}
    return _EXAMPLE_CONFIG


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into base. Override values take precedence."""
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _merged_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Merge config with example so missing keys come from config file."""
    return _deep_merge(_load_example_config(), cfg)


def _section(config: Optional[Dict[str, Any]], section: str) -> Dict[str, Any]:
    merged = _merged_config(config or {})
    s = merged.get(section)
    return dict(s) if isinstance(s, dict) else {}


def read_config(config_path: Optional[str] = None) -> Tuple[Dict[str, Any], str]:
    """Load YAML config merged over the example. Returns (config, resolved_path).

    Path order: argument, DEVICELINK_CONFIG, config/config.yaml; falls back to the example.
    """
    config_path = config_path or os.environ.get("DEVICELINK_CONFIG", "config/config.yaml")
    if not Path(config_path).exists():
        config_path = str(_EXAMPLE_PATH)
    config_path = str(Path(config_path).resolve())
    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    return _merged_config(config), config_path


def get_logging_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    s = _section(config, "logging")
    return {"level": str(s.get("level")).upper(), "color": bool(s.get("color"))}


def get_manager_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return manager listener config (name, host, port, accept_poll_sec, join_timeout_sec)."""
    s = _section(config, "manager")
    return {
        "name": s.get("name"),
        "host": s.get("host"),
        "port": int(s.get("port")),
        "accept_poll_sec": float(s.get("accept_poll_sec")),
        "join_timeout_sec": float(s.get("join_timeout_sec")),
    }


def get_device_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return device config: identity, manager directory name, connect retry budget and backoff."""
    s = _section(config, "device")
    out = {
        "name": s.get("name"),
        "device_id": s.get("id"),
        "manager_name": s.get("manager_name"),
        "connect_timeout_sec": float(s.get("connect_timeout_sec")),
        "backoff_initial_sec": float(s.get("backoff_initial_sec")),
        "backoff_max_sec": float(s.get("backoff_max_sec")),
    }
    if out["backoff_initial_sec"] <= 0:
        raise ValueError("device.backoff_initial_sec must be > 0")
    return out


def get_reader_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return polling config. poll_interval_sec must be > 0; min_polls >= 1."""
    s = _section(config, "reader")
    out = {
        "name": s.get("name"),
        "poll_interval_sec": float(s.get("poll_interval_sec")),
        "timeout_sec": float(s.get("timeout_sec")),
        "min_polls": int(s.get("min_polls")),
    }
    if out["poll_interval_sec"] <= 0:
        raise ValueError("reader.poll_interval_sec must be > 0")
    if out["min_polls"] < 1:
        raise ValueError("reader.min_polls must be >= 1")
    return out


def get_model_store_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    s = _section(config, "model_store")
    backend = str(s.get("backend")).lower()
    if backend not in ("memory", "http"):
        raise ValueError(f"model_store.backend must be 'memory' or 'http', got {backend!r}")
    return {
        "backend": backend,
        "base_url": s.get("base_url"),
        "timeout_sec": float(s.get("timeout_sec")),
    }


def get_model_server_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    s = _section(config, "model_server")
    return {
        "name": s.get("name"),
        "host": s.get("host"),
        "port": int(s.get("port")),
        "log_level": s.get("log_level"),
        "startup_timeout_sec": float(s.get("startup_timeout_sec")),
    }


def get_directory_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    """Return name -> address mapping. User entries replace example entries key by key."""
    s = _section(config, "directory")
    entries = s.get("entries") or {}
    return {str(k): str(v) for k, v in entries.items()}
