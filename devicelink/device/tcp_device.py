"""Simple TCP device: no control component, only status + invocation counter over a text link.

Transitions are driven by explicit calls (initialize, service_running, service_completed,
reset_completed). Each one is a synchronous send; state changes only after the send succeeded.
"""

import logging
import threading
from typing import Optional, Tuple

from devicelink.core.errors import LinkClosed
from devicelink.core.logging_utils import log_status_token
from devicelink.core.status import DeviceStatus, StatusRecord
from devicelink.directory.directory import Directory
from devicelink.fsm.device_fsm import DeviceEvent, DeviceStateMachine
from devicelink.link.protocol import format_status_token
from devicelink.link.status_link import StatusLink

logger = logging.getLogger(__name__)


class SimpleTCPDevice:
    """Device mockup. Give either manager_address or directory + manager_name."""

    def __init__(
        self,
        device_id: str = "device",
        manager_address: Optional[Tuple[str, int]] = None,
        directory: Optional[Directory] = None,
        manager_name: str = "DeviceManager",
        connect_timeout: float = 10.0,
        backoff_initial: float = 0.05,
        backoff_max: float = 1.0,
        name: str = "Device",
    ):
        if manager_address is None and directory is None:
            raise ValueError("manager_address or directory is required")
        self.device_id = device_id
        self.name = name
        self._manager_address = manager_address
        self._directory = directory
        self._manager_name = manager_name
        self._connect_timeout = connect_timeout
        self._backoff_initial = backoff_initial
        self._backoff_max = backoff_max
        self._fsm = DeviceStateMachine()
        self._link: Optional[StatusLink] = None
        # one transition at a time: plan, send, apply
        self._lock = threading.Lock()

    @property
    def status(self) -> DeviceStatus:
        return self._fsm.current

    @property
    def invocation_counter(self) -> int:
        return self._fsm.invocation_counter

    @property
    def connected(self) -> bool:
        return self._link is not None and not self._link.closed

    def _resolve_manager(self) -> Tuple[str, int]:
        if self._manager_address is not None:
            return self._manager_address
        return self._directory.resolve_tcp(self._manager_name)

    def connect(self) -> None:
        """Open the status link, retrying until the manager listens. Raises LinkUnavailable."""
        if self.connected:
            return
        address = self._resolve_manager()
        self._link = StatusLink.open(
            address,
            timeout=self._connect_timeout,
            backoff_initial=self._backoff_initial,
            backoff_max=self._backoff_max,
        )

    # Lifecycle used by Deployment
    def start(self) -> None:
        self.connect()

    def stop(self) -> None:
        self.close()

    def close(self) -> None:
        if self._link is not None:
            self._link.close()
            self._link = None

    def _fire(self, event: DeviceEvent) -> StatusRecord:
        with self._lock:
            planned = self._fsm.plan(event)
            if self._link is None:
                raise LinkClosed(f"device {self.device_id} is not connected")
            self._link.send_line(format_status_token(planned))
            self._fsm.apply(event, planned)
        log_status_token("tx", self.device_id, planned.status.value, planned.invocation_counter)
        return planned

    def initialize(self) -> StatusRecord:
        """Any state -> IDLE; announces the current counter."""
        return self._fire(DeviceEvent.INITIALIZE)

    def service_running(self) -> StatusRecord:
        """IDLE -> EXECUTE: a process step is running."""
        return self._fire(DeviceEvent.SERVICE_RUNNING)

    def service_completed(self) -> StatusRecord:
        """EXECUTE -> COMPLETE: the process step finished."""
        return self._fire(DeviceEvent.SERVICE_COMPLETED)

    def reset_completed(self) -> StatusRecord:
        """COMPLETE -> IDLE: counts one invocation; the next step may be invoked."""
        return self._fire(DeviceEvent.RESET_COMPLETED)
