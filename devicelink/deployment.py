"""Deployment: start/stop named components in order, and the simple-TCP-device scenario wiring.

Scenario: model server (http backend) or in-memory store -> device manager (TCP listener,
registered in the directory) -> device (connects via directory) -> dashboard application.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

from devicelink.config.settings import (
    get_device_config,
    get_manager_config,
    get_model_server_config,
    get_model_store_config,
    get_reader_config,
)
from devicelink.device.tcp_device import SimpleTCPDevice
from devicelink.directory.directory import Directory
from devicelink.manager.device_manager import DeviceManager
from devicelink.model_server.app import ModelServerThread
from devicelink.reader.dashboard import DashboardApplication
from devicelink.store.base import ModelStore
from devicelink.store.memory_store import InMemoryModelStore

logger = logging.getLogger(__name__)


class Component(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


class Deployment:
    """Ordered named components. start() in order, stop() in reverse; usable as a context manager."""

    def __init__(self, directory: Optional[Directory] = None):
        self.directory = directory if directory is not None else Directory()
        self._components: Dict[str, Component] = {}
        self._started: List[str] = []

    def add(self, name: str, component: Component) -> "Deployment":
        if name in self._components:
            raise ValueError(f"duplicate component name {name!r}")
        self._components[name] = component
        return self

    def get(self, name: str) -> Any:
        try:
            return self._components[name]
        except KeyError:
            raise KeyError(f"no component named {name!r}") from None

    def start(self) -> None:
        for name, component in self._components.items():
            if name in self._started:
                continue
            logger.info("Starting %s", name)
            try:
                component.start()
            except Exception:
                logger.error("Starting %s failed; stopping started components", name)
                self.stop()
                raise
            self._started.append(name)

    def stop(self) -> None:
        while self._started:
            name = self._started.pop()
            logger.info("Stopping %s", name)
            try:
                self._components[name].stop()
            except Exception as e:
                logger.warning("Stopping %s failed: %s", name, e)

    def __enter__(self) -> "Deployment":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()


class _StoreComponent:
    """Closes client-side stores on stop."""

    def __init__(self, *stores: ModelStore):
        self.stores = stores

    def start(self) -> None:
        return

    def stop(self) -> None:
        for store in self.stores:
            store.close()


def build_scenario(config: Optional[Dict[str, Any]] = None, directory: Optional[Directory] = None) -> Deployment:
    """Wire model store, manager, device and dashboard from config (not started)."""
    config = config or {}
    directory = directory if directory is not None else Directory.from_config(config)
    deployment = Deployment(directory)

    store_cfg = get_model_store_config(config)
    manager_cfg = get_manager_config(config)
    device_cfg = get_device_config(config)
    reader_cfg = get_reader_config(config)

    if store_cfg["backend"] == "http":
        from devicelink.store.http_store import HttpModelStore

        server_cfg = get_model_server_config(config)
        if server_cfg["port"] == 0:
            # clients and the directory are built from model_store.base_url before the server binds
            raise ValueError("model_server.port must be a fixed port for the http backend")
        server = ModelServerThread(
            host=server_cfg["host"],
            port=server_cfg["port"],
            log_level=server_cfg["log_level"],
            startup_timeout=server_cfg["startup_timeout_sec"],
        )
        deployment.add(server_cfg["name"], server)
        directory.register(server_cfg["name"], store_cfg["base_url"])
        # manager and readers are HTTP clients of the server, like remote consumers
        writer_store: ModelStore = HttpModelStore(store_cfg["base_url"], timeout=store_cfg["timeout_sec"])
        reader_store: ModelStore = HttpModelStore(store_cfg["base_url"], timeout=store_cfg["timeout_sec"])
        deployment.add("ModelStoreClients", _StoreComponent(writer_store, reader_store))
    else:
        writer_store = reader_store = InMemoryModelStore()

    manager = DeviceManager(
        writer_store,
        device_id=device_cfg["device_id"],
        host=manager_cfg["host"],
        port=manager_cfg["port"],
        directory=directory,
        name=manager_cfg["name"],
        accept_poll_sec=manager_cfg["accept_poll_sec"],
        join_timeout_sec=manager_cfg["join_timeout_sec"],
    )
    device = SimpleTCPDevice(
        device_id=device_cfg["device_id"],
        directory=directory,
        manager_name=device_cfg["manager_name"],
        connect_timeout=device_cfg["connect_timeout_sec"],
        backoff_initial=device_cfg["backoff_initial_sec"],
        backoff_max=device_cfg["backoff_max_sec"],
        name=device_cfg["name"],
    )
    application = DashboardApplication(
        reader_store,
        device_id=device_cfg["device_id"],
        poll_interval=reader_cfg["poll_interval_sec"],
        timeout=reader_cfg["timeout_sec"],
        min_polls=reader_cfg["min_polls"],
        name=reader_cfg["name"],
    )
    deployment.add(manager.name, manager)
    deployment.add(device.name, device)
    deployment.add(application.name, application)
    return deployment
