"""Directory: resolve component name -> address."""

from devicelink.directory.directory import Directory, parse_tcp_address

__all__ = ["Directory", "parse_tcp_address"]
