"""Wire tokens: ``STATUS:<state>:<counter>`` as newline-terminated ASCII lines."""

import re
from typing import Union

from devicelink.core.errors import MalformedToken
from devicelink.core.status import DeviceStatus, StatusRecord

TOKEN_PREFIX = "STATUS"
LINE_TERMINATOR = b"\n"
# longer digit runs are rejected before int()
MAX_COUNTER_DIGITS = 20
# far above the longest valid token; receivers cut lines at this length
MAX_LINE_BYTES = 256

_TOKEN_RE = re.compile(r"STATUS:([A-Z]+):([0-9]+)")


def format_status_token(record: StatusRecord) -> str:
    """Return the token for record, without the line terminator."""
    return f"{TOKEN_PREFIX}:{record.status.value}:{record.invocation_counter}"


def encode_line(text: str) -> bytes:
    """ASCII-encode one line and append the terminator. Embedded newlines are rejected."""
    if "\n" in text or "\r" in text:
        raise ValueError(f"line must not contain a line break: {text!r}")
    return text.encode("ascii") + LINE_TERMINATOR


def parse_status_token(line: Union[bytes, str]) -> StatusRecord:
    """Parse one received line (terminator optional). Raises MalformedToken."""
    if isinstance(line, bytes):
        try:
            text = line.decode("ascii")
        except UnicodeDecodeError:
            raise MalformedToken(line, "not ASCII")
    else:
        text = line
    text = text.rstrip("\r\n")
    if not text:
        raise MalformedToken(line, "empty line")
    m = _TOKEN_RE.fullmatch(text)
    if m is None:
        raise MalformedToken(line, "expected STATUS:<state>:<counter>")
    state, counter = m.group(1), m.group(2)
    try:
        status = DeviceStatus(state)
    except ValueError:
        raise MalformedToken(line, f"unknown state {state}")
    if len(counter) > MAX_COUNTER_DIGITS:
        raise MalformedToken(line, "counter out of range")
    return StatusRecord(status, int(counter))
