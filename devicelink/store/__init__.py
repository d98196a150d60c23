"""Model store: where the manager republishes device status and readers fetch it."""

from devicelink.store.base import ModelStore
from devicelink.store.memory_store import InMemoryModelStore

# Lazy import so the package loads without httpx (in-memory scenarios)
def __getattr__(name: str):
    if name == "HttpModelStore":
        from devicelink.store.http_store import HttpModelStore
        return HttpModelStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["ModelStore", "InMemoryModelStore", "HttpModelStore"]
