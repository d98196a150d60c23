"""FSM package: device lifecycle (IDLE -> EXECUTE -> COMPLETE -> IDLE)."""

from devicelink.core.status import DeviceStatus, StatusRecord
from devicelink.fsm.device_fsm import DeviceEvent, DeviceStateMachine

__all__ = ["DeviceEvent", "DeviceStateMachine", "DeviceStatus", "StatusRecord"]
