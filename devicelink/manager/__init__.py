"""Device manager: receives status tokens and republishes them to the model store."""

from devicelink.manager.device_manager import DeviceManager

__all__ = ["DeviceManager"]
