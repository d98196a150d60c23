"""Polling observers of the model store."""

from devicelink.reader.dashboard import DashboardApplication
from devicelink.reader.status_reader import StatusReader

__all__ = ["DashboardApplication", "StatusReader"]
