"""Dashboard application: reads device status and invocation counter from the model store."""

from typing import Optional

from devicelink.core.status import DeviceStatus, StatusRecord
from devicelink.reader.status_reader import StatusReader
from devicelink.store.base import ModelStore


class DashboardApplication:
    def __init__(
        self,
        store: ModelStore,
        device_id: str = "device",
        poll_interval: float = 0.05,
        timeout: float = 5.0,
        min_polls: int = 3,
        name: str = "Application",
    ):
        self.name = name
        self._reader = StatusReader(store, device_id, poll_interval=poll_interval, timeout=timeout, min_polls=min_polls)

    @property
    def reader(self) -> StatusReader:
        return self._reader

    def get_device_status(self) -> Optional[str]:
        record = self._reader.fetch()
        return record.status.value if record is not None else None

    def get_device_invocation_counter(self) -> Optional[int]:
        record = self._reader.fetch()
        return record.invocation_counter if record is not None else None

    def wait_for_status(self, status: DeviceStatus, invocation_counter: Optional[int] = None, timeout: Optional[float] = None) -> StatusRecord:
        return self._reader.wait_for_status(status, invocation_counter, timeout=timeout)

    def start(self) -> None:
        self._reader.reset()

    def stop(self) -> None:
        self._reader.abort()
