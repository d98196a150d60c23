"""Model store client for the HTTP model server (PUT/GET /devices/{id}/status)."""

import logging
from typing import List, Optional
from urllib.parse import quote

import httpx

from devicelink.core.errors import StoreUnavailable
from devicelink.core.status import StatusRecord
from devicelink.store.base import ModelStore

logger = logging.getLogger(__name__)


class HttpModelStore(ModelStore):
    """
    ModelStore over HTTP.

    Either give base_url (a client is created and owned) or an existing httpx.Client
    (e.g. fastapi.testclient.TestClient), which is not closed by close().
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 2.0,
        client: Optional[httpx.Client] = None,
    ):
        if client is None and not base_url:
            raise ValueError("either base_url or client is required")
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._base_url = base_url or str(self._client.base_url)

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def _path(device_id: str) -> str:
        return f"/devices/{quote(device_id, safe='')}/status"

    def publish(self, device_id: str, record: StatusRecord) -> None:
        try:
            response = self._client.put(self._path(device_id), json=record.to_dict())
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"publish {device_id} to {self._base_url} failed: {e}") from e
        if response.status_code != 200:
            raise StoreUnavailable(
                f"publish {device_id} rejected: {response.status_code} - {response.text}"
            )

    def fetch(self, device_id: str) -> Optional[StatusRecord]:
        try:
            response = self._client.get(self._path(device_id))
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"fetch {device_id} from {self._base_url} failed: {e}") from e
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise StoreUnavailable(f"fetch {device_id} failed: {response.status_code} - {response.text}")
        try:
            return StatusRecord.from_dict(response.json())
        except (KeyError, TypeError, ValueError) as e:
            raise StoreUnavailable(f"fetch {device_id}: bad payload {response.text!r}") from e

    def device_ids(self) -> List[str]:
        try:
            response = self._client.get("/devices")
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"list devices from {self._base_url} failed: {e}") from e
        return list(response.json().get("devices", []))

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
            logger.debug("HTTP model store client closed (%s)", self._base_url)
