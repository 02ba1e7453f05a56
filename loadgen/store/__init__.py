"""Store clients for the objects under load."""

from loadgen.store.base import (
    ObjectChannel,
    StoreClient,
    StoreError,
    StoreConnectionError,
    StoreWriteError,
    StoreReadError,
    StoreRemoveError,
    StoreObjectNotFound,
)
from loadgen.store.memory import MemoryStoreClient
from loadgen.store.rados_client import RadosStoreClient

BACKENDS = ("rados", "memory")


def create_store_client(backend: str, connection) -> StoreClient:
    """Build the store client for a backend name."""
    if backend == "rados":
        return RadosStoreClient(connection)
    if backend == "memory":
        return MemoryStoreClient()
    raise ValueError(f"Unknown store backend: {backend}")


__all__ = [
    "BACKENDS",
    "create_store_client",
    "ObjectChannel",
    "StoreClient",
    "StoreError",
    "StoreConnectionError",
    "StoreWriteError",
    "StoreReadError",
    "StoreRemoveError",
    "StoreObjectNotFound",
    "MemoryStoreClient",
    "RadosStoreClient",
]
