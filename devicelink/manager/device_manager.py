"""Manufacturing device manager: one status link in, one model-store record out.

Receive loop (dedicated thread): block for a line -> parse -> publish -> wait again.
- Malformed line: logged and dropped, record unchanged, loop continues.
- Store failure: logged and counted, loop continues (record in store stays stale).
- EOF / socket error: loop ends, last record stays in the store; no reconnect.
"""

import logging
import threading
from typing import Optional, Tuple

from devicelink.core.errors import LinkClosed, MalformedToken, StoreUnavailable
from devicelink.core.logging_utils import log_malformed_token, log_status_token
from devicelink.core.metrics import LinkMetrics
from devicelink.core.status import StatusRecord
from devicelink.directory.directory import Directory
from devicelink.link.protocol import parse_status_token
from devicelink.link.status_link import StatusLinkListener
from devicelink.store.base import ModelStore

logger = logging.getLogger(__name__)


class DeviceManager:
    """Owns the receiving end of exactly one status link; the model store's sole writer for device_id."""

    def __init__(
        self,
        store: ModelStore,
        device_id: str = "device",
        host: str = "127.0.0.1",
        port: int = 9998,
        directory: Optional[Directory] = None,
        name: str = "DeviceManager",
        accept_poll_sec: float = 0.2,
        join_timeout_sec: float = 2.0,
    ):
        self.store = store
        self.device_id = device_id
        self.name = name
        self.metrics = LinkMetrics(device_id)
        self._directory = directory
        self._listener = StatusLinkListener(host, port, accept_poll_sec=accept_poll_sec)
        self._join_timeout_sec = join_timeout_sec
        self._thread: Optional[threading.Thread] = None
        self._record_lock = threading.Lock()
        self._record: Optional[StatusRecord] = None
        self._link_error: Optional[BaseException] = None

    @property
    def address(self) -> Tuple[str, int]:
        return self._listener.address

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def link_error(self) -> Optional[BaseException]:
        """Error that ended the receive loop, if it ended on a socket error."""
        return self._link_error

    def current_record(self) -> Optional[StatusRecord]:
        """Last record this manager published (None before the first valid token)."""
        with self._record_lock:
            return self._record

    def start(self) -> None:
        """Bind listener, register address in the directory, start the receive loop."""
        if self._thread is not None:
            return
        host, port = self._listener.bind()
        if self._directory is not None:
            self._directory.register(self.name, f"{host}:{port}")
        self._thread = threading.Thread(target=self._run, name=f"{self.name}-rx", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Close link and listener; join the receive loop."""
        self._listener.close()
        if self._thread is not None:
            self._thread.join(timeout=self._join_timeout_sec)
            if self._thread.is_alive():
                logger.warning("%s receive loop did not stop within %ss", self.name, self._join_timeout_sec)
            self._thread = None

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the receive loop to end (peer disconnect or stop())."""
        if self._thread is not None:
            self._thread.join(timeout)

    def handle_line(self, line: bytes) -> Optional[StatusRecord]:
        """Parse one line and publish it. Returns the record, or None if dropped or not published."""
        self.metrics.inc_lines_received()
        try:
            record = parse_status_token(line)
        except MalformedToken as e:
            self.metrics.inc_malformed_dropped()
            log_malformed_token(self.device_id, line, e.reason)
            return None
        try:
            self.store.publish(self.device_id, record)
        except StoreUnavailable as e:
            self.metrics.inc_publish_failures()
            logger.error("%s publish %s for %s failed: %s", self.name, record, self.device_id, e)
            return None
        with self._record_lock:
            self._record = record
        self.metrics.inc_tokens_published()
        log_status_token("rx", self.device_id, record.status.value, record.invocation_counter)
        return record

    def _run(self) -> None:
        try:
            if not self._listener.accept():
                return
            for line in self._listener.lines():
                try:
                    self.handle_line(line)
                except Exception:
                    # one bad line must not end the link
                    self.metrics.inc_malformed_dropped()
                    logger.exception("%s: unexpected error handling line %r", self.name, line[:64])
            logger.info("%s: status link closed by device %s", self.name, self.device_id)
        except LinkClosed as e:
            self._link_error = e
            logger.warning("%s: status link dropped: %s", self.name, e)
        finally:
            self._listener.close()
            self.metrics.log_snapshot()
