"""Polling reader: re-fetch the device's record until a predicate holds or the timeout elapses."""

import logging
import threading
import time
from typing import Callable, Optional, Tuple

from devicelink.core.errors import StoreUnavailable, WaitTimedOut
from devicelink.core.status import DeviceStatus, StatusRecord
from devicelink.store.base import ModelStore

logger = logging.getLogger(__name__)

Predicate = Callable[[Optional[StatusRecord]], bool]


class StatusReader:
    """
    Poll one device's record in the model store.

    poll_interval must be > 0. Each wait polls at min(interval, timeout / min_polls), so even
    a very short timeout gets at least min_polls evaluations. abort() ends pending waits early.
    """

    def __init__(
        self,
        store: ModelStore,
        device_id: str = "device",
        poll_interval: float = 0.05,
        timeout: float = 5.0,
        min_polls: int = 3,
    ):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        if timeout <= 0:
            raise ValueError("timeout must be > 0")
        if min_polls < 1:
            raise ValueError("min_polls must be >= 1")
        self.store = store
        self.device_id = device_id
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.min_polls = min_polls
        self._abort = threading.Event()

    def fetch(self) -> Optional[StatusRecord]:
        """Latest record; None if not yet published. Raises StoreUnavailable."""
        return self.store.fetch(self.device_id)

    def _try_fetch(self) -> Tuple[bool, Optional[StatusRecord]]:
        """(ok, record); ok is False when the store could not be read."""
        try:
            return True, self.fetch()
        except StoreUnavailable as e:
            logger.debug("poll %s: store unavailable: %s", self.device_id, e)
            return False, None

    def abort(self) -> None:
        """End every pending wait with WaitTimedOut(aborted=True)."""
        self._abort.set()

    def reset(self) -> None:
        self._abort.clear()

    def wait_for(
        self,
        predicate: Predicate,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
    ) -> Optional[StatusRecord]:
        """Return the first fetched record (None before the first publish) for which predicate(record) is true.

        Raises WaitTimedOut (carrying the last record seen) when timeout elapses first.
        A poll that fails with StoreUnavailable is not shown to predicate; polling continues.
        """
        timeout = self.timeout if timeout is None else timeout
        interval = self.poll_interval if interval is None else interval
        if timeout <= 0:
            raise ValueError("timeout must be > 0")
        if interval <= 0:
            raise ValueError("interval must be > 0")
        interval = min(interval, timeout / self.min_polls)

        start = time.monotonic()
        deadline = start + timeout
        polls = 0
        last: Optional[StatusRecord] = None
        while True:
            ok, record = self._try_fetch()
            polls += 1
            if record is not None:
                last = record
            if ok and predicate(record):
                return record
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            if self._abort.wait(min(interval, remaining)):
                elapsed = time.monotonic() - start
                raise WaitTimedOut(timeout, elapsed, polls, last, aborted=True)
        elapsed = time.monotonic() - start
        logger.info("wait on %s timed out after %.3fs (%s polls), last=%s", self.device_id, elapsed, polls, last)
        raise WaitTimedOut(timeout, elapsed, polls, last)

    def wait_for_status(
        self,
        status: DeviceStatus,
        invocation_counter: Optional[int] = None,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
    ) -> StatusRecord:
        """Wait until the record has status (and invocation_counter, if given)."""
        status = DeviceStatus(status)

        def _matches(record: Optional[StatusRecord]) -> bool:
            if record is None or record.status != status:
                return False
            return invocation_counter is None or record.invocation_counter == invocation_counter

        return self.wait_for(_matches, timeout=timeout, interval=interval)
