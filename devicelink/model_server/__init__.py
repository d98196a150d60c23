"""HTTP model server: remotely readable device status (GET/PUT /devices/{id}/status)."""

from devicelink.model_server.app import ModelServerThread, create_app, run_server

__all__ = ["ModelServerThread", "create_app", "run_server"]
