"""Errors, structured logging and link metrics."""

from devicelink.core.errors import (
    DeviceLinkError,
    DirectoryLookupError,
    InvalidTransition,
    LinkClosed,
    LinkUnavailable,
    MalformedToken,
    StoreUnavailable,
    WaitTimedOut,
)

__all__ = [
    "DeviceLinkError",
    "DirectoryLookupError",
    "InvalidTransition",
    "LinkClosed",
    "LinkUnavailable",
    "MalformedToken",
    "StoreUnavailable",
    "WaitTimedOut",
]
