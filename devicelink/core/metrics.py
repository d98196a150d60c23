"""In-memory counters for one status link: lines received, published, dropped, publish failures."""

import logging
import threading
import time
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class LinkMetrics:
    """Counters updated by the manager's receive loop; safe to read from other threads."""

    def __init__(self, device_id: str = ""):
        self._lock = threading.Lock()
        self._device_id = device_id
        self._lines_received = 0
        self._tokens_published = 0
        self._malformed_dropped = 0
        self._publish_failures = 0
        self._last_token_ts: Optional[float] = None

    def inc_lines_received(self) -> int:
        with self._lock:
            self._lines_received += 1
            return self._lines_received

    def inc_tokens_published(self) -> int:
        with self._lock:
            self._tokens_published += 1
            self._last_token_ts = time.time()
            return self._tokens_published

    def inc_malformed_dropped(self) -> int:
        with self._lock:
            self._malformed_dropped += 1
            return self._malformed_dropped

    def inc_publish_failures(self) -> int:
        with self._lock:
            self._publish_failures += 1
            return self._publish_failures

    @property
    def lines_received(self) -> int:
        with self._lock:
            return self._lines_received

    @property
    def tokens_published(self) -> int:
        with self._lock:
            return self._tokens_published

    @property
    def malformed_dropped(self) -> int:
        with self._lock:
            return self._malformed_dropped

    @property
    def publish_failures(self) -> int:
        with self._lock:
            return self._publish_failures

    @property
    def last_token_ts(self) -> Optional[float]:
        with self._lock:
            return self._last_token_ts

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "device_id": self._device_id,
                "lines_received": self._lines_received,
                "tokens_published": self._tokens_published,
                "malformed_dropped": self._malformed_dropped,
                "publish_failures": self._publish_failures,
                "last_token_ts": self._last_token_ts,
            }

    def log_snapshot(self) -> None:
        """Log current metrics snapshot."""
        snap = self.snapshot()
        parts = [f"{k}={v}" for k, v in snap.items() if v is not None]
        logger.info("link_metrics " + " ".join(parts))
