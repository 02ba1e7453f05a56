"""Store client interface and error types.

A ``StoreClient`` owns the cluster connection, which is shared read-only by
all workers. Each worker opens its own ``ObjectChannel`` (an I/O context
bound to the pool) and issues object and omap operations through it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class StoreError(Exception):
    """Base class for store failures."""


class StoreConnectionError(StoreError):
    """The store could not be reached or the pool could not be opened."""


class StoreWriteError(StoreError):
    """An object write or omap set failed."""


class StoreReadError(StoreError):
    """An omap read failed."""


class StoreRemoveError(StoreError):
    """An object removal failed."""


class StoreObjectNotFound(StoreReadError, StoreRemoveError):
    """The target object does not exist."""


class ObjectChannel(ABC):
    """Per-worker I/O channel to the objects of one pool."""

    @abstractmethod
    def write_placeholder(self, object_name: str, data: bytes) -> None:
        """Ensure *object_name* exists, replacing its data with *data*."""

    @abstractmethod
    def set_entries(self, object_name: str, entries: dict[str, bytes]) -> None:
        """Upsert omap entries on *object_name*."""

    @abstractmethod
    def get_keys_page(
        self,
        object_name: str,
        after_marker: str,
        max_count: int,
    ) -> tuple[list[str], bool]:
        """Return up to *max_count* keys strictly greater than *after_marker*.

        Keys come back in ascending order together with a flag telling
        whether more keys exist past the returned page.
        """

    @abstractmethod
    def remove_object(self, object_name: str) -> None:
        """Remove *object_name* and its omap."""

    def close(self) -> None:
        """Release the channel."""

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class StoreClient(ABC):
    """Connection to a store hosting omap objects."""

    @abstractmethod
    def connect(self) -> None:
        """Connect and make sure the target pool exists."""

    @abstractmethod
    def open_channel(self) -> ObjectChannel:
        """Open an I/O channel for one worker."""

    @abstractmethod
    def shutdown(self) -> None:
        """Tear down the connection."""

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *exc):
        self.shutdown()
