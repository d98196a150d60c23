"""HTTP model server + HttpModelStore tests (FastAPI TestClient)."""

import httpx
import pytest
from fastapi.testclient import TestClient

from devicelink.core.errors import StoreUnavailable
from devicelink.core.status import DeviceStatus, StatusRecord
from devicelink.model_server.app import create_app
from devicelink.store.http_store import HttpModelStore
from devicelink.store.memory_store import InMemoryModelStore


@pytest.fixture
def backing_store():
    return InMemoryModelStore()


@pytest.fixture
def client(backing_store):
    return TestClient(create_app(backing_store))


@pytest.fixture
def http_store(client):
    return HttpModelStore(client=client)


def test_health(client):
    assert client.get("/health").json() == {"ok": True}


def test_unknown_device_is_404(client, http_store):
    assert client.get("/devices/nope/status").status_code == 404
    assert http_store.fetch("nope") is None


def test_publish_then_fetch(http_store, backing_store):
    http_store.publish("device", StatusRecord(DeviceStatus.EXECUTE, 2))
    assert backing_store.fetch("device") == StatusRecord(DeviceStatus.EXECUTE, 2)
    assert http_store.fetch("device") == StatusRecord(DeviceStatus.EXECUTE, 2)
    assert http_store.device_ids() == ["device"]


def test_get_payload_shape(client, backing_store):
    backing_store.publish("device", StatusRecord(DeviceStatus.COMPLETE, 5))
    assert client.get("/devices/device/status").json() == {
        "device_id": "device",
        "status": "COMPLETE",
        "invocation_counter": 5,
    }


@pytest.mark.parametrize(
    "body",
    [
        {"status": "RUNNING", "invocation_counter": 0},
        {"status": "IDLE", "invocation_counter": -1},
        {"status": "IDLE"},
        {"invocation_counter": 1},
    ],
)
def test_put_rejects_invalid_body(client, backing_store, body):
    backing_store.publish("device", StatusRecord(DeviceStatus.IDLE, 0))
    assert client.put("/devices/device/status", json=body).status_code == 422
    assert backing_store.fetch("device") == StatusRecord(DeviceStatus.IDLE, 0)


def test_device_id_is_url_quoted(http_store, backing_store):
    http_store.publish("cell 1", StatusRecord(DeviceStatus.IDLE, 0))
    assert backing_store.fetch("cell 1") == StatusRecord(DeviceStatus.IDLE, 0)
    assert http_store.fetch("cell 1") == StatusRecord(DeviceStatus.IDLE, 0)


def test_unreachable_server_raises_store_unavailable():
    store = HttpModelStore("http://127.0.0.1:1", timeout=0.5)
    try:
        with pytest.raises(StoreUnavailable):
            store.fetch("device")
        with pytest.raises(StoreUnavailable):
            store.publish("device", StatusRecord(DeviceStatus.IDLE, 0))
    finally:
        store.close()


def test_requires_base_url_or_client():
    with pytest.raises(ValueError):
        HttpModelStore()


def test_injected_client_not_closed(client):
    store = HttpModelStore(client=client)
    store.close()
    assert isinstance(client, httpx.Client)
    assert client.get("/health").status_code == 200
