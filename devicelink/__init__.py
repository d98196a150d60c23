"""devicelink: simulated TCP device, device manager and polling status reader."""

__version__ = "0.1.0"
