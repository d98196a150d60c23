"""Structured logging for status tokens, device transitions and malformed lines; console setup for scripts."""

import logging
import sys
import uuid
from typing import Any, Optional

logger = logging.getLogger(__name__)

# ANSI color codes
_RESET = "\033[0m"
_BOLD = "\033[1m"
_GRAY = "\033[90m"
_YELLOW = "\033[33m"
_RED = "\033[31m"
_CYAN = "\033[36m"

_LEVEL_COLORS = {
    logging.DEBUG: _GRAY,
    logging.INFO: _CYAN,
    logging.WARNING: _YELLOW,
    logging.ERROR: _RED + _BOLD,
    logging.CRITICAL: _RED + _BOLD,
}


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors per log level."""

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno, _RESET)
        record.levelname = f"{color}[{record.levelname}]{_RESET}"
        return super().format(record)


def setup_logging(level: str = "INFO", color: bool = True) -> None:
    """Configure root logging to stdout. level is a name (DEBUG/INFO/...)."""
    handler = logging.StreamHandler(sys.stdout)
    fmt = "%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    handler.setFormatter(ColoredFormatter(fmt=fmt, datefmt=datefmt) if color else logging.Formatter(fmt, datefmt))
    logging.root.handlers.clear()
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    # uvicorn access log is noisy at 20 polls per second
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _ensure_trace_id(extra: dict) -> str:
    trace_id = extra.get("trace_id")
    if not trace_id:
        trace_id = str(uuid.uuid4())[:8]
        extra["trace_id"] = trace_id
    return trace_id


def _format(event: str, extra: dict) -> str:
    return event + " " + " ".join(f"{k}={v}" for k, v in sorted(extra.items()))


def log_status_token(
    direction: str,
    device_id: str,
    status: Optional[str] = None,
    invocation_counter: Optional[int] = None,
    trace_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log a status token sent (direction=tx) or received and published (direction=rx)."""
    extra = extra or {}
    if trace_id:
        extra["trace_id"] = trace_id
    _ensure_trace_id(extra)
    extra["direction"] = direction
    extra["device_id"] = device_id
    if status is not None:
        extra["status"] = status
    if invocation_counter is not None:
        extra["invocation_counter"] = invocation_counter
    logger.info(_format("status_token", extra))


def log_device_transition(
    from_state: str,
    to_state: str,
    event: str,
    invocation_counter: int,
    trace_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log device FSM transition: from_state, to_state, event, invocation_counter."""
    extra = extra or {}
    if trace_id:
        extra["trace_id"] = trace_id
    _ensure_trace_id(extra)
    extra["from_state"] = from_state
    extra["to_state"] = to_state
    extra["event"] = event
    extra["invocation_counter"] = invocation_counter
    logger.info(_format("device_transition", extra))


def log_malformed_token(device_id: str, line: Any, reason: str, extra: Optional[dict] = None) -> None:
    """Log a dropped line. Record in the model store is left as it was."""
    extra = extra or {}
    _ensure_trace_id(extra)
    extra["device_id"] = device_id
    extra["line"] = repr(line)
    extra["reason"] = reason
    logger.warning(_format("malformed_token", extra))
