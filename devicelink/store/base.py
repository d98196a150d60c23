"""ModelStore abstract interface: publish/fetch of one StatusRecord per device id.

The manager is the only writer; any number of readers fetch. publish() must replace the
whole record at once so a reader never sees status from one token and counter from another.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from devicelink.core.status import StatusRecord


class ModelStore(ABC):
    """Key-value surface keyed by device id."""

    @abstractmethod
    def publish(self, device_id: str, record: StatusRecord) -> None:
        """Create or replace the record for device_id. Raises StoreUnavailable on backend failure."""
        ...

    @abstractmethod
    def fetch(self, device_id: str) -> Optional[StatusRecord]:
        """Return the latest record, or None if nothing was published yet. Raises StoreUnavailable."""
        ...

    def device_ids(self) -> List[str]:
        return []

    def close(self) -> None:
        return
