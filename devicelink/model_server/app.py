"""FastAPI app for GET /health, GET /devices, GET/PUT /devices/{device_id}/status.

Backed by any ModelStore (InMemoryModelStore in practice). The manager is the only writer;
dashboards and readers poll GET."""

import logging
import threading
import time
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from devicelink.config.settings import get_model_server_config
from devicelink.core.errors import StoreUnavailable
from devicelink.core.status import DeviceStatus, StatusRecord
from devicelink.store.base import ModelStore
from devicelink.store.memory_store import InMemoryModelStore

logger = logging.getLogger(__name__)


class StatusBody(BaseModel):
    """PUT body; unknown status or negative counter is rejected with 422."""

    status: DeviceStatus
    invocation_counter: int = Field(ge=0)


def create_app(store: Optional[ModelStore] = None) -> FastAPI:
    """Build FastAPI app over store (new InMemoryModelStore if None)."""
    store = store if store is not None else InMemoryModelStore()
    app = FastAPI(title="devicelink model server", description="Device status model store")
    app.state.store = store

    @app.get("/health")
    def get_health() -> Dict[str, Any]:
        return {"ok": True}

    @app.get("/devices")
    def get_devices() -> Dict[str, Any]:
        """List device ids that have a status record."""
        return {"devices": store.device_ids()}

    @app.get("/devices/{device_id}/status")
    def get_device_status(device_id: str) -> JSONResponse:
        """Return {device_id, status, invocation_counter}; 404 until the first publish."""
        try:
            record = store.fetch(device_id)
        except StoreUnavailable as e:
            logger.warning("get_device_status %s failed: %s", device_id, e)
            return JSONResponse(status_code=503, content={"error": str(e)})
        if record is None:
            return JSONResponse(status_code=404, content={"error": f"no status for device {device_id}"})
        return JSONResponse(status_code=200, content={"device_id": device_id, **record.to_dict()})

    @app.put("/devices/{device_id}/status")
    def put_device_status(device_id: str, body: StatusBody) -> JSONResponse:
        """Replace the record for device_id in one step."""
        record = StatusRecord(body.status, body.invocation_counter)
        try:
            store.publish(device_id, record)
        except StoreUnavailable as e:
            logger.warning("put_device_status %s failed: %s", device_id, e)
            return JSONResponse(status_code=503, content={"error": str(e)})
        logger.debug("Published %s for %s", record, device_id)
        return JSONResponse(status_code=200, content={"ok": True, "device_id": device_id, **record.to_dict()})

    return app


def run_server(config: dict) -> None:
    """Run the model server in the foreground (host/port from model_server config)."""
    server_cfg = get_model_server_config(config)
    app = create_app()
    logger.info("Model server on %s:%s", server_cfg["host"], server_cfg["port"])
    uvicorn.run(app, host=server_cfg["host"], port=int(server_cfg["port"]), log_level=server_cfg["log_level"])


class ModelServerThread:
    """Run the model server in a background thread (in-process deployments and tests)."""

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 8765,
        store: Optional[ModelStore] = None,
        log_level: str = "warning",
        startup_timeout: float = 5.0,
    ):
        self.store = store if store is not None else InMemoryModelStore()
        self._host = host
        self._port = port
        self._startup_timeout = startup_timeout
        self._server = uvicorn.Server(
            uvicorn.Config(create_app(self.store), host=host, port=port, log_level=log_level)
        )
        self._thread: Optional[threading.Thread] = None

    @property
    def base_url(self) -> str:
        return f"http://{self._host}:{self._port}"

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._server.run, name="model-server", daemon=True)
        self._thread.start()
        deadline = time.monotonic() + self._startup_timeout
        while not self._server.started:
            if not self._thread.is_alive():
                raise RuntimeError(f"model server on {self.base_url} exited during startup")
            if time.monotonic() > deadline:
                self.stop()
                raise RuntimeError(f"model server on {self.base_url} did not start within {self._startup_timeout}s")
            time.sleep(0.02)
        if self._port == 0 and self._server.servers:
            # port 0: report the port the OS picked
            self._port = self._server.servers[0].sockets[0].getsockname()[1]
        logger.info("Model server started on %s", self.base_url)

    def stop(self) -> None:
        if self._thread is None:
            return
        self._server.should_exit = True
        self._thread.join(timeout=self._startup_timeout)
        self._thread = None
        logger.info("Model server on %s stopped", self.base_url)
