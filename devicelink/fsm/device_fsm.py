"""Device lifecycle FSM: IDLE -> EXECUTE -> COMPLETE -> IDLE, one invocation counted per full cycle.

Transitions (event: allowed from -> to):
- INITIALIZE: any state -> IDLE (counter unchanged, re-announces current counter)
- SERVICE_RUNNING: IDLE -> EXECUTE
- SERVICE_COMPLETED: EXECUTE -> COMPLETE
- RESET_COMPLETED: COMPLETE -> IDLE (counter + 1)

The device sends each token before committing, so plan() and apply() are separate:
a failed send leaves state and counter untouched.
"""

import enum
import logging
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from devicelink.core.errors import InvalidTransition
from devicelink.core.logging_utils import log_device_transition
from devicelink.core.status import DeviceStatus, StatusRecord

logger = logging.getLogger(__name__)


class DeviceEvent(str, enum.Enum):
    """External triggers driving the device; each maps to one device method."""

    INITIALIZE = "initialize"
    SERVICE_RUNNING = "service_running"
    SERVICE_COMPLETED = "service_completed"
    RESET_COMPLETED = "reset_completed"


_ANY_STATE: FrozenSet[DeviceStatus] = frozenset(DeviceStatus)

# event -> (allowed from-states, to-state, counter increment)
_TRANSITIONS: Dict[DeviceEvent, Tuple[FrozenSet[DeviceStatus], DeviceStatus, int]] = {
    DeviceEvent.INITIALIZE: (_ANY_STATE, DeviceStatus.IDLE, 0),
    DeviceEvent.SERVICE_RUNNING: (frozenset({DeviceStatus.IDLE}), DeviceStatus.EXECUTE, 0),
    DeviceEvent.SERVICE_COMPLETED: (frozenset({DeviceStatus.EXECUTE}), DeviceStatus.COMPLETE, 0),
    DeviceEvent.RESET_COMPLETED: (frozenset({DeviceStatus.COMPLETE}), DeviceStatus.IDLE, 1),
}


class DeviceStateMachine:
    """Holds device status and invocation counter; validates and applies transitions."""

    def __init__(
        self,
        invocation_counter: int = 0,
        on_transition: Optional[Callable[[DeviceStatus, DeviceStatus, DeviceEvent], None]] = None,
    ):
        if invocation_counter < 0:
            raise ValueError("invocation_counter must be >= 0")
        self._current = DeviceStatus.IDLE
        self._invocation_counter = invocation_counter
        self._on_transition = on_transition

    @property
    def current(self) -> DeviceStatus:
        return self._current

    @property
    def invocation_counter(self) -> int:
        return self._invocation_counter

    def record(self) -> StatusRecord:
        return StatusRecord(self._current, self._invocation_counter)

    def can_fire(self, event: DeviceEvent) -> bool:
        """Check if event is valid from the current state."""
        allowed, _, _ = _TRANSITIONS[event]
        return self._current in allowed

    def plan(self, event: DeviceEvent) -> StatusRecord:
        """Return the record event would produce. Raises InvalidTransition; does not change state."""
        allowed, to_state, increment = _TRANSITIONS[event]
        if self._current not in allowed:
            logger.warning(
                "Invalid transition: %s from %s (allowed from: %s)",
                event.value,
                self._current.value,
                sorted(s.value for s in allowed),
            )
            raise InvalidTransition(event.value, self._current.value, sorted(s.value for s in allowed))
        return StatusRecord(to_state, self._invocation_counter + increment)

    def apply(self, event: DeviceEvent, planned: StatusRecord) -> None:
        """Commit a record previously returned by plan(event)."""
        if planned != self.plan(event):
            raise ValueError(f"stale plan for {event.value}: {planned} (state is now {self.record()})")
        from_state = self._current
        self._current = planned.status
        self._invocation_counter = planned.invocation_counter
        log_device_transition(from_state.value, planned.status.value, event.value, planned.invocation_counter)
        if self._on_transition:
            try:
                self._on_transition(from_state, planned.status, event)
            except Exception as e:
                logger.debug("on_transition callback error: %s", e)

    def fire(self, event: DeviceEvent) -> StatusRecord:
        """plan + apply in one step (no link involved)."""
        planned = self.plan(event)
        self.apply(event, planned)
        return planned
