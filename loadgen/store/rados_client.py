"""Store client backed by the Ceph ``rados`` Python bindings.

The bindings ship with Ceph (``python3-rados``) rather than PyPI, so they are
imported when a connection is first made.
"""

from __future__ import annotations

import logging
from typing import Optional

from common.models.cluster import CephConnection
from loadgen.store.base import (
    ObjectChannel,
    StoreClient,
    StoreConnectionError,
    StoreObjectNotFound,
    StoreReadError,
    StoreRemoveError,
    StoreWriteError,
)

logger = logging.getLogger(__name__)


def _import_rados():
    try:
        import rados
    except ImportError as e:
        raise StoreConnectionError(
            "Ceph Python bindings are not installed (install python3-rados)"
        ) from e
    return rados


class RadosChannel(ObjectChannel):
    """Object channel over a RADOS I/O context."""

    def __init__(self, rados_module, ioctx):
        self._rados = rados_module
        self._ioctx = ioctx

    def write_placeholder(self, object_name: str, data: bytes) -> None:
        try:
            self._ioctx.write_full(object_name, data)
        except self._rados.Error as e:
            raise StoreWriteError(f"write_full {object_name} failed: {e}") from e

    def set_entries(self, object_name: str, entries: dict[str, bytes]) -> None:
        keys = tuple(entries.keys())
        values = tuple(entries.values())
        try:
            with self._rados.WriteOpCtx() as write_op:
                self._ioctx.set_omap(write_op, keys, values)
                self._ioctx.operate_write_op(write_op, object_name)
        except self._rados.Error as e:
            raise StoreWriteError(f"omap set on {object_name} failed: {e}") from e

    def get_keys_page(
        self,
        object_name: str,
        after_marker: str,
        max_count: int,
    ) -> tuple[list[str], bool]:
        try:
            with self._rados.ReadOpCtx() as read_op:
                it, _ = self._ioctx.get_omap_keys(read_op, after_marker, max_count)
                self._ioctx.operate_read_op(read_op, object_name)
                keys = [key for key, _ in it]
        except self._rados.ObjectNotFound as e:
            raise StoreObjectNotFound(f"{object_name} does not exist") from e
        except self._rados.Error as e:
            raise StoreReadError(f"omap get keys on {object_name} failed: {e}") from e

        # The binding does not surface librados' "more" flag, and the OSD caps
        # a page at osd_max_omap_entries_per_request, so a short page does not
        # mean the end. Only an empty page does.
        return keys, bool(keys)

    def remove_object(self, object_name: str) -> None:
        try:
            self._ioctx.remove_object(object_name)
        except self._rados.ObjectNotFound as e:
            raise StoreObjectNotFound(f"{object_name} does not exist") from e
        except self._rados.Error as e:
            raise StoreRemoveError(f"remove {object_name} failed: {e}") from e

    def close(self) -> None:
        if self._ioctx is not None:
            self._ioctx.close()
            self._ioctx = None


class RadosStoreClient(StoreClient):
    """Connection to a Ceph cluster through librados."""

    def __init__(self, connection: CephConnection):
        self.connection = connection
        self._rados = None
        self._cluster = None

    @property
    def is_connected(self) -> bool:
        return self._cluster is not None

    def connect(self) -> None:
        if self._cluster is not None:
            return

        rados = _import_rados()
        conn = self.connection
        logger.info(
            f"Connecting to Ceph cluster (conf={conn.conf_path}, "
            f"user={conn.user or 'default'}, pool={conn.pool})"
        )

        try:
            cluster = rados.Rados(
                rados_id=conn.user or None,
                conffile=conn.conf_path,
                conf=conn.conf_overrides,
            )
            cluster.connect(timeout=conn.connect_timeout)
        except rados.Error as e:
            raise StoreConnectionError(f"Failed to connect to Ceph cluster: {e}") from e

        try:
            if not cluster.pool_exists(conn.pool):
                logger.info(f"Creating pool {conn.pool}")
                cluster.create_pool(conn.pool)
        except rados.Error as e:
            cluster.shutdown()
            raise StoreConnectionError(f"Failed to ensure pool {conn.pool}: {e}") from e

        self._rados = rados
        self._cluster = cluster
        logger.info("Connected to Ceph cluster successfully")

    def open_channel(self) -> RadosChannel:
        if self._cluster is None:
            raise StoreConnectionError("Not connected to Ceph cluster")
        try:
            ioctx = self._cluster.open_ioctx(self.connection.pool)
        except self._rados.Error as e:
            raise StoreConnectionError(
                f"Failed to open I/O context for pool {self.connection.pool}: {e}"
            ) from e
        return RadosChannel(self._rados, ioctx)

    def shutdown(self) -> None:
        if self._cluster is not None:
            self._cluster.shutdown()
            self._cluster = None
            logger.info("Disconnected from Ceph cluster")
