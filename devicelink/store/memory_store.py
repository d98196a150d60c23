"""In-process model store: dict of immutable records behind a lock."""

import logging
import threading
from typing import Dict, List, Optional

from devicelink.core.status import StatusRecord
from devicelink.store.base import ModelStore

logger = logging.getLogger(__name__)


class InMemoryModelStore(ModelStore):
    """Thread-safe store; records are frozen so replacing the reference is the whole update."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[str, StatusRecord] = {}

    def publish(self, device_id: str, record: StatusRecord) -> None:
        if not isinstance(record, StatusRecord):
            raise TypeError(f"record must be StatusRecord, got {type(record).__name__}")
        with self._lock:
            created = device_id not in self._records
            self._records[device_id] = record
        if created:
            logger.debug("Model store record created for %s: %s", device_id, record)

    def fetch(self, device_id: str) -> Optional[StatusRecord]:
        with self._lock:
            return self._records.get(device_id)

    def device_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
