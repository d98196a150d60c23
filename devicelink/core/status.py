"""Device status enum and the (status, invocation_counter) record mirrored by manager and readers."""

import enum
from dataclasses import dataclass


class DeviceStatus(str, enum.Enum):
    """Device lifecycle status. Values are the wire names."""

    IDLE = "IDLE"
    EXECUTE = "EXECUTE"
    COMPLETE = "COMPLETE"


@dataclass(frozen=True)
class StatusRecord:
    """Immutable status + invocation counter; always published and fetched as one value."""

    status: DeviceStatus
    invocation_counter: int

    def __post_init__(self) -> None:
        if not isinstance(self.status, DeviceStatus):
            object.__setattr__(self, "status", DeviceStatus(self.status))
        if isinstance(self.invocation_counter, bool) or not isinstance(self.invocation_counter, int):
            raise TypeError(f"invocation_counter must be int, got {type(self.invocation_counter).__name__}")
        if self.invocation_counter < 0:
            raise ValueError(f"invocation_counter must be >= 0, got {self.invocation_counter}")

    def to_dict(self) -> dict:
        return {"status": self.status.value, "invocation_counter": self.invocation_counter}

    @classmethod
    def from_dict(cls, data: dict) -> "StatusRecord":
        return cls(status=DeviceStatus(data["status"]), invocation_counter=int(data["invocation_counter"]))

    def __str__(self) -> str:
        return f"({self.status.value},{self.invocation_counter})"
