"""Pytest fixtures for devicelink tests."""

import sys
from pathlib import Path

import pytest

# Ensure project root is in path for devicelink imports
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from devicelink.device.tcp_device import SimpleTCPDevice  # noqa: E402
from devicelink.directory.directory import Directory  # noqa: E402
from devicelink.manager.device_manager import DeviceManager  # noqa: E402
from devicelink.reader.status_reader import StatusReader  # noqa: E402
from devicelink.store.memory_store import InMemoryModelStore  # noqa: E402

DEVICE_ID = "device"


@pytest.fixture
def project_root() -> Path:
    return _project_root


@pytest.fixture
def store() -> InMemoryModelStore:
    return InMemoryModelStore()


@pytest.fixture
def directory() -> Directory:
    return Directory()


@pytest.fixture
def manager(store, directory):
    """Started manager on a free loopback port, registered as DeviceManager."""
    m = DeviceManager(store, device_id=DEVICE_ID, host="127.0.0.1", port=0, directory=directory, accept_poll_sec=0.05)
    m.start()
    yield m
    m.stop()


@pytest.fixture
def device(manager, directory):
    """Device connected to the manager fixture via the directory."""
    d = SimpleTCPDevice(device_id=DEVICE_ID, directory=directory, connect_timeout=2.0, backoff_initial=0.01)
    d.connect()
    yield d
    d.close()


@pytest.fixture
def reader(store) -> StatusReader:
    return StatusReader(store, DEVICE_ID, poll_interval=0.01, timeout=2.0)
