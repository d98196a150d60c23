"""Status link: wire token codec and the line-oriented TCP transport."""

from devicelink.link.protocol import format_status_token, parse_status_token
from devicelink.link.status_link import StatusLink, StatusLinkListener

__all__ = ["StatusLink", "StatusLinkListener", "format_status_token", "parse_status_token"]
