"""Line-oriented TCP transport between one device (StatusLink) and one manager (StatusLinkListener).

In-order, exactly-once while the connection holds. A dropped connection is fatal for the
link; the transport never reconnects. Only the initial connect retries (startup race with
the manager's listener).
"""

import logging
import socket
import threading
import time
from typing import Iterator, Optional, Tuple

from devicelink.core.errors import LinkClosed, LinkUnavailable
from devicelink.link.protocol import LINE_TERMINATOR, MAX_LINE_BYTES, encode_line

logger = logging.getLogger(__name__)


def _format_address(address: Tuple[str, int]) -> str:
    return f"{address[0]}:{address[1]}"


class StatusLink:
    """Sending end of the link (device side). Open with StatusLink.open()."""

    def __init__(self, sock: socket.socket, address: Tuple[str, int]):
        self._sock = sock
        self._address = address
        self._closed = False

    @classmethod
    def open(
        cls,
        address: Tuple[str, int],
        timeout: float = 10.0,
        backoff_initial: float = 0.05,
        backoff_max: float = 1.0,
    ) -> "StatusLink":
        """Connect to address, retrying with exponential backoff until timeout elapses.

        Raises LinkUnavailable when the budget is spent. Always makes at least one attempt.
        """
        if backoff_initial <= 0:
            raise ValueError("backoff_initial must be > 0")
        start = time.monotonic()
        deadline = start + max(0.0, timeout)
        delay = backoff_initial
        attempt = 0
        last_exc: Optional[BaseException] = None
        while True:
            attempt += 1
            remaining = deadline - time.monotonic()
            try:
                sock = socket.create_connection(address, timeout=max(remaining, backoff_initial))
                sock.settimeout(None)
                sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                logger.info("Status link connected to %s (attempt %s)", _format_address(address), attempt)
                return cls(sock, address)
            except OSError as e:
                last_exc = e
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            logger.debug(
                "Status link connect to %s failed (%s), retrying in %.3fs",
                _format_address(address),
                last_exc,
                min(delay, remaining),
            )
            time.sleep(min(delay, remaining))
            delay = min(delay * 2, backoff_max)
        waited = time.monotonic() - start
        logger.error("Status link to %s unavailable after %s attempts: %s", _format_address(address), attempt, last_exc)
        raise LinkUnavailable(_format_address(address), waited, attempt, last_exc)

    @property
    def address(self) -> Tuple[str, int]:
        return self._address

    @property
    def closed(self) -> bool:
        return self._closed

    def send_line(self, text: str) -> None:
        """Send one line synchronously. Raises LinkClosed if the link is closed or broken."""
        if self._closed:
            raise LinkClosed(f"status link to {_format_address(self._address)} is closed")
        data = encode_line(text)
        try:
            self._sock.sendall(data)
        except OSError as e:
            self.close()
            raise LinkClosed(f"send to {_format_address(self._address)} failed: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._sock.close()
        logger.debug("Status link to %s closed", _format_address(self._address))

    def __enter__(self) -> "StatusLink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class StatusLinkListener:
    """Receiving end of the link (manager side): bind, accept exactly one peer, read lines."""

    def __init__(self, host: str = "127.0.0.1", port: int = 0, accept_poll_sec: float = 0.2):
        self._host = host
        self._port = port
        self._accept_poll_sec = accept_poll_sec
        self._server: Optional[socket.socket] = None
        self._conn: Optional[socket.socket] = None
        self._peer: Optional[Tuple[str, int]] = None
        self._closed = threading.Event()
        self._lock = threading.Lock()

    def bind(self) -> Tuple[str, int]:
        """Bind and listen. Returns the bound (host, port); port 0 resolves to the real port."""
        server = socket.create_server((self._host, self._port), backlog=1)
        server.settimeout(self._accept_poll_sec)
        self._server = server
        host, port = server.getsockname()[:2]
        self._port = port
        logger.info("Status link listening on %s:%s", host, port)
        return host, port

    @property
    def address(self) -> Tuple[str, int]:
        return self._host, self._port

    @property
    def peer(self) -> Optional[Tuple[str, int]]:
        return self._peer

    def accept(self) -> bool:
        """Block until one peer connects. Returns False if close() was called first."""
        if self._server is None:
            raise RuntimeError("bind() must be called before accept()")
        while not self._closed.is_set():
            try:
                conn, peer = self._server.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._closed.is_set():
                    return False
                raise LinkClosed(f"accept failed: {e}") from e
            conn.settimeout(None)
            with self._lock:
                if self._closed.is_set():
                    conn.close()
                    return False
                self._conn = conn
                self._peer = peer[:2]
            # exactly one device per link
            self._server.close()
            logger.info("Status link accepted peer %s", _format_address(self._peer))
            return True
        return False

    def lines(self) -> Iterator[bytes]:
        """Yield raw lines (terminator stripped) until EOF. Raises LinkClosed on a socket error.

        Returns at once if close() was called. A line longer than MAX_LINE_BYTES is yielded
        cut at that length (it can never parse) and the rest of it is discarded.
        """
        with self._lock:
            conn = self._conn
        if conn is None:
            if self._closed.is_set():
                return
            raise RuntimeError("accept() must succeed before reading lines")
        reader = conn.makefile("rb")
        try:
            while True:
                raw = self._readline(reader)
                if not raw:
                    return
                if not raw.endswith(LINE_TERMINATOR):
                    if len(raw) < MAX_LINE_BYTES:
                        # peer closed mid-line; partial token is never delivered
                        logger.warning("Status link dropped partial line %r at EOF", raw)
                        return
                    logger.warning("Status link cut over-long line from %s", _format_address(self._peer))
                    if not self._discard_rest(reader):
                        yield raw
                        return
                yield raw.rstrip(b"\r\n")
        finally:
            reader.close()

    def _readline(self, reader) -> bytes:
        try:
            return reader.readline(MAX_LINE_BYTES)
        except (OSError, ValueError) as e:
            if self._closed.is_set():
                return b""
            raise LinkClosed(f"receive from {_format_address(self._peer)} failed: {e}") from e

    def _discard_rest(self, reader) -> bool:
        """Skip to the end of the current line. Returns False on EOF."""
        while True:
            chunk = self._readline(reader)
            if not chunk:
                return False
            if chunk.endswith(LINE_TERMINATOR):
                return True

    def close(self) -> None:
        """Close listener and connection; unblocks accept() and lines()."""
        self._closed.set()
        with self._lock:
            conn = self._conn
            self._conn = None
        if conn is not None:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            conn.close()
        if self._server is not None:
            self._server.close()
