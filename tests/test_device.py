"""Simple TCP device tests: tokens sent per transition, invalid transitions send nothing."""

import socket

import pytest

from devicelink.core.errors import InvalidTransition, LinkClosed, LinkUnavailable
from devicelink.core.status import DeviceStatus, StatusRecord
from devicelink.device.tcp_device import SimpleTCPDevice
from devicelink.directory.directory import Directory

from conftest import DEVICE_ID


def test_device_resolves_manager_via_directory(device, manager, directory):
    assert directory.resolve("DeviceManager") == f"127.0.0.1:{manager.address[1]}"
    assert device.connected


def test_cycle_publishes_each_status(device, reader):
    device.initialize()
    assert reader.wait_for_status(DeviceStatus.IDLE, 0) == StatusRecord(DeviceStatus.IDLE, 0)
    device.service_running()
    assert reader.wait_for_status(DeviceStatus.EXECUTE, 0)
    device.service_completed()
    assert reader.wait_for_status(DeviceStatus.COMPLETE, 0)
    rec = device.reset_completed()
    assert rec == StatusRecord(DeviceStatus.IDLE, 1)
    assert reader.wait_for_status(DeviceStatus.IDLE, 1)
    assert device.invocation_counter == 1


def test_invalid_transition_sends_no_token(device, manager, reader, store):
    device.initialize()
    device.service_running()
    device.service_completed()
    reader.wait_for_status(DeviceStatus.COMPLETE, 0)
    lines_before = manager.metrics.lines_received

    with pytest.raises(InvalidTransition):
        device.service_running()
    assert device.status == DeviceStatus.COMPLETE
    assert store.fetch(DEVICE_ID) == StatusRecord(DeviceStatus.COMPLETE, 0)

    # next valid token is the only extra line the manager sees
    device.reset_completed()
    reader.wait_for_status(DeviceStatus.IDLE, 1)
    assert manager.metrics.lines_received == lines_before + 1


def test_send_failure_leaves_state_unchanged(device, reader):
    device.initialize()
    device.service_running()
    reader.wait_for_status(DeviceStatus.EXECUTE, 0)
    device._link._sock.shutdown(socket.SHUT_WR)
    with pytest.raises(LinkClosed):
        device.service_completed()
    assert device.status == DeviceStatus.EXECUTE
    assert device.invocation_counter == 0
    assert not device.connected


def test_fire_after_close_raises_link_closed(device):
    device.initialize()
    device.close()
    with pytest.raises(LinkClosed):
        device.service_running()
    assert device.status == DeviceStatus.IDLE
    assert device.invocation_counter == 0


def test_invalid_transition_checked_before_link():
    d = SimpleTCPDevice(device_id="x", manager_address=("127.0.0.1", 1))
    with pytest.raises(InvalidTransition):
        d.service_completed()
    with pytest.raises(LinkClosed):
        d.initialize()


def test_connect_fails_with_link_unavailable():
    directory = Directory({"DeviceManager": "127.0.0.1:1"})
    d = SimpleTCPDevice(directory=directory, connect_timeout=0.2, backoff_initial=0.02)
    with pytest.raises(LinkUnavailable):
        d.connect()
    assert not d.connected


def test_requires_address_or_directory():
    with pytest.raises(ValueError):
        SimpleTCPDevice()
