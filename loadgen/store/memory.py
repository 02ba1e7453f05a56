"""In-process store client.

Keeps every object's omap as a sorted key list plus a value dict, which is
enough to exercise the pagination protocol without a cluster. Used for
dry runs (``--backend memory``) and by the test suite.
"""

from __future__ import annotations

import bisect
import threading
from dataclasses import dataclass, field

from loadgen.store.base import (
    ObjectChannel,
    StoreClient,
    StoreConnectionError,
    StoreObjectNotFound,
)


@dataclass
class MemoryObject:
    data: bytes = b""
    keys: list[str] = field(default_factory=list)
    values: dict[str, bytes] = field(default_factory=dict)


class MemoryChannel(ObjectChannel):
    """Channel into a ``MemoryStoreClient``."""

    def __init__(self, store: "MemoryStoreClient"):
        self._store = store

    def write_placeholder(self, object_name: str, data: bytes) -> None:
        with self._store.lock:
            obj = self._store.objects.get(object_name)
            if obj is None:
                obj = self._store.objects[object_name] = MemoryObject()
                self._store.record("create", object_name)
            obj.data = bytes(data)

    def set_entries(self, object_name: str, entries: dict[str, bytes]) -> None:
        with self._store.lock:
            obj = self._store.objects.get(object_name)
            if obj is None:
                # omap writes create the object, as in RADOS
                obj = self._store.objects[object_name] = MemoryObject()
                self._store.record("create", object_name)
            for key, value in entries.items():
                if key not in obj.values:
                    bisect.insort(obj.keys, key)
                obj.values[key] = bytes(value)

    def get_keys_page(
        self,
        object_name: str,
        after_marker: str,
        max_count: int,
    ) -> tuple[list[str], bool]:
        with self._store.lock:
            self._store.page_fetches += 1
            obj = self._store.objects.get(object_name)
            if obj is None:
                raise StoreObjectNotFound(f"{object_name} does not exist")
            start = bisect.bisect_right(obj.keys, after_marker)
            page = obj.keys[start:start + max_count]
            more = start + max_count < len(obj.keys)
            return page, more

    def remove_object(self, object_name: str) -> None:
        with self._store.lock:
            if self._store.objects.pop(object_name, None) is None:
                raise StoreObjectNotFound(f"{object_name} does not exist")
            self._store.record("remove", object_name)


class MemoryStoreClient(StoreClient):
    """Thread-safe in-memory store."""

    def __init__(self):
        self.lock = threading.Lock()
        self.objects: dict[str, MemoryObject] = {}
        # Object lifecycle log: ("create" | "remove", object_name)
        self.history: list[tuple[str, str]] = []
        self.page_fetches = 0
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        self._connected = True

    def open_channel(self) -> MemoryChannel:
        if not self._connected:
            raise StoreConnectionError("Memory store is not connected")
        return MemoryChannel(self)

    def shutdown(self) -> None:
        self._connected = False

    def record(self, operation: str, object_name: str) -> None:
        self.history.append((operation, object_name))

    # Inspection helpers

    def object_names(self) -> list[str]:
        with self.lock:
            return sorted(self.objects)

    def keys(self, object_name: str) -> list[str]:
        with self.lock:
            obj = self.objects.get(object_name)
            return list(obj.keys) if obj else []

    def value(self, object_name: str, key: str) -> bytes | None:
        with self.lock:
            obj = self.objects.get(object_name)
            return obj.values.get(key) if obj else None
