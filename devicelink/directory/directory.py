"""Preconfigured directory: component name -> address ("host:port" or URL).

Entries come from the directory.entries config section; components that bind at runtime
(e.g. a manager on port 0) register their real address.
"""

import logging
import threading
from typing import Dict, Optional, Tuple

from devicelink.config.settings import get_directory_config
from devicelink.core.errors import DirectoryLookupError

logger = logging.getLogger(__name__)


def parse_tcp_address(address: str) -> Tuple[str, int]:
    """Split "host:port" (host may be bracketed IPv6). Raises ValueError."""
    host, sep, port = address.strip().rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"expected host:port, got {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, int(port)


class Directory:
    """Thread-safe name -> address lookup."""

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self._lock = threading.Lock()
        self._entries: Dict[str, str] = dict(entries or {})

    @classmethod
    def from_config(cls, config: Optional[dict] = None) -> "Directory":
        return cls(get_directory_config(config))

    def register(self, name: str, address: str) -> None:
        with self._lock:
            previous = self._entries.get(name)
            self._entries[name] = address
        if previous != address:
            logger.info("Directory: %s -> %s%s", name, address, f" (was {previous})" if previous else "")

    def resolve(self, name: str) -> str:
        with self._lock:
            address = self._entries.get(name)
        if address is None:
            raise DirectoryLookupError(name)
        return address

    def resolve_tcp(self, name: str) -> Tuple[str, int]:
        return parse_tcp_address(self.resolve(name))

    def names(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._entries)
