"""Simulated manufacturing device reporting its lifecycle over the status link."""

from devicelink.device.tcp_device import SimpleTCPDevice

__all__ = ["SimpleTCPDevice"]
