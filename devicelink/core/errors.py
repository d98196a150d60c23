"""Error taxonomy for the status link, device FSM, model store and polling reader.

Only MalformedToken is absorbed where it is raised (the manager drops the line);
everything else propagates to the caller.
"""

from typing import Any, Optional


class DeviceLinkError(Exception):
    """Base class for all devicelink errors."""


class LinkUnavailable(DeviceLinkError):
    """Connecting to the manager failed until the connect budget ran out. Retryable."""

    def __init__(self, address: str, waited_sec: float, attempts: int, cause: Optional[BaseException] = None):
        self.address = address
        self.waited_sec = waited_sec
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            f"status link to {address} unavailable after {attempts} attempts ({waited_sec:.2f}s): {cause}"
        )


class LinkClosed(DeviceLinkError):
    """Send or receive on a link that is closed or was dropped mid-stream."""


class InvalidTransition(DeviceLinkError):
    """Device operation called from a state that does not allow it (programming error)."""

    def __init__(self, event: str, current: str, allowed_from: Any = ()):
        self.event = event
        self.current = current
        self.allowed_from = tuple(allowed_from)
        super().__init__(
            f"{event} not allowed in state {current} (allowed from: {', '.join(self.allowed_from) or 'none'})"
        )


class MalformedToken(DeviceLinkError, ValueError):
    """A received line does not match STATUS:<state>:<counter>."""

    def __init__(self, line: Any, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"malformed token {line!r}: {reason}")


class WaitTimedOut(DeviceLinkError):
    """Polling predicate was not satisfied within the timeout (or the wait was aborted)."""

    def __init__(self, timeout_sec: float, elapsed_sec: float, polls: int, last_record: Any = None, aborted: bool = False):
        self.timeout_sec = timeout_sec
        self.elapsed_sec = elapsed_sec
        self.polls = polls
        self.last_record = last_record
        self.aborted = aborted
        what = "aborted" if aborted else "timed out"
        super().__init__(
            f"wait {what} after {elapsed_sec:.3f}s ({polls} polls, timeout {timeout_sec}s); last record: {last_record}"
        )


class StoreUnavailable(DeviceLinkError):
    """Model store could not be reached or rejected the request."""


class DirectoryLookupError(DeviceLinkError, LookupError):
    """Component name is not known to the directory."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown component {name!r}")
