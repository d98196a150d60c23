"""
End-to-end simple TCP device scenario: device -> manager -> model store -> dashboard.

Sequence: initialize; service_running; service_completed; reset_completed
observed as (IDLE,0) -> (EXECUTE,0) -> (COMPLETE,0) -> (IDLE,1).
"""

import socket

import pytest

from devicelink.core.errors import InvalidTransition, WaitTimedOut
from devicelink.core.status import DeviceStatus
from devicelink.deployment import Deployment, build_scenario


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def _memory_config() -> dict:
    return {
        "manager": {"port": 0, "accept_poll_sec": 0.05},
        "device": {"connect_timeout_sec": 2.0, "backoff_initial_sec": 0.01},
        "model_store": {"backend": "memory"},
    }


def _run_cycle(deployment: Deployment) -> list:
    device = deployment.get("Device")
    app = deployment.get("Application")
    observed = []

    # Device updates status to ready
    device.initialize()
    observed.append(app.wait_for_status(DeviceStatus.IDLE))
    assert app.get_device_status() == "IDLE"
    assert app.get_device_invocation_counter() == 0

    # The device indicates that a process step is running
    device.service_running()
    observed.append(app.wait_for_status(DeviceStatus.EXECUTE))

    # The device indicates that process step did finish
    device.service_completed()
    observed.append(app.wait_for_status(DeviceStatus.COMPLETE))

    # Device ready again, next process step may be invoked
    device.reset_completed()
    observed.append(app.wait_for_status(DeviceStatus.IDLE, 1))
    assert app.get_device_status() == "IDLE"
    assert app.get_device_invocation_counter() == 1
    return [(r.status.value, r.invocation_counter) for r in observed]


def test_scenario_in_memory():
    with build_scenario(_memory_config()) as deployment:
        assert _run_cycle(deployment) == [("IDLE", 0), ("EXECUTE", 0), ("COMPLETE", 0), ("IDLE", 1)]


def test_invalid_transition_does_not_change_observed_record():
    with build_scenario(_memory_config()) as deployment:
        device = deployment.get("Device")
        app = deployment.get("Application")
        device.initialize()
        device.service_running()
        device.service_completed()
        app.wait_for_status(DeviceStatus.COMPLETE, 0)
        with pytest.raises(InvalidTransition):
            device.service_running()
        with pytest.raises(WaitTimedOut):
            app.reader.wait_for_status(DeviceStatus.EXECUTE, timeout=0.2)
        assert app.get_device_status() == "COMPLETE"


def test_waiting_for_nonexistent_state_times_out():
    with build_scenario(_memory_config()) as deployment:
        deployment.get("Device").initialize()
        app = deployment.get("Application")
        app.wait_for_status(DeviceStatus.IDLE, 0)
        with pytest.raises(WaitTimedOut):
            app.reader.wait_for(lambda r: r is not None and r.status.value == "MAINTENANCE", timeout=0.25)


def test_stop_order_is_reverse_of_start():
    calls = []

    class C:
        def __init__(self, name):
            self.name = name

        def start(self):
            calls.append(("start", self.name))

        def stop(self):
            calls.append(("stop", self.name))

    d = Deployment()
    d.add("a", C("a")).add("b", C("b"))
    with d:
        pass
    assert calls == [("start", "a"), ("start", "b"), ("stop", "b"), ("stop", "a")]
    with pytest.raises(ValueError):
        d.add("a", C("a"))
    with pytest.raises(KeyError):
        d.get("missing")


def test_failed_start_stops_started_components():
    calls = []

    class Ok:
        def start(self):
            calls.append("ok.start")

        def stop(self):
            calls.append("ok.stop")

    class Broken:
        def start(self):
            raise RuntimeError("nope")

        def stop(self):
            calls.append("broken.stop")

    d = Deployment().add("ok", Ok()).add("broken", Broken())
    with pytest.raises(RuntimeError):
        d.start()
    assert calls == ["ok.start", "ok.stop"]


@pytest.mark.slow
def test_scenario_over_http_model_server():
    port = _free_port()
    config = _memory_config()
    config["model_store"] = {"backend": "http", "base_url": f"http://127.0.0.1:{port}"}
    config["model_server"] = {"port": port}
    with build_scenario(config) as deployment:
        assert deployment.directory.resolve("ModelServer") == f"http://127.0.0.1:{port}"
        assert _run_cycle(deployment) == [("IDLE", 0), ("EXECUTE", 0), ("COMPLETE", 0), ("IDLE", 1)]


def test_http_backend_rejects_ephemeral_server_port():
    config = _memory_config()
    config["model_store"] = {"backend": "http", "base_url": "http://127.0.0.1:8765"}
    config["model_server"] = {"port": 0}
    with pytest.raises(ValueError):
        build_scenario(config)
