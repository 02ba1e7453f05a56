"""Unit tests for the RADOS store client, run against a fake binding."""

import sys
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from common.models.cluster import CephConnection
from loadgen.store.base import (
    StoreConnectionError,
    StoreObjectNotFound,
    StoreReadError,
    StoreRemoveError,
    StoreWriteError,
)
from common.models.results import OperationStatus
from common.models.workload import WorkloadConfig
from loadgen.core.workers import CursorScanner
from loadgen.store.rados_client import RadosChannel, RadosStoreClient, _import_rados


class FakeRadosError(Exception):
    pass


class FakeObjectNotFound(FakeRadosError):
    pass


@pytest.fixture
def fake_rados():
    """A stand-in for the ``rados`` module."""
    return SimpleNamespace(
        Error=FakeRadosError,
        ObjectNotFound=FakeObjectNotFound,
        Rados=MagicMock(),
        WriteOpCtx=MagicMock(),
        ReadOpCtx=MagicMock(),
    )


@pytest.fixture
def connection():
    return CephConnection(
        conf_path="/tmp/ceph.conf",
        user="admin",
        keyring_path="/tmp/admin.keyring",
        pool="omap-test",
    )


class TestRadosStoreClient:
    """Tests for connecting and tearing down."""

    def test_missing_binding(self):
        """Test a missing binding surfaces as a connection error."""
        with patch.dict(sys.modules, {"rados": None}):
            with pytest.raises(StoreConnectionError, match="python3-rados"):
                _import_rados()

    def test_connect_creates_pool(self, fake_rados, connection):
        """Test connecting passes the conf and creates a missing pool."""
        cluster = fake_rados.Rados.return_value
        cluster.pool_exists.return_value = False

        with patch("loadgen.store.rados_client._import_rados", return_value=fake_rados):
            client = RadosStoreClient(connection)
            client.connect()

        fake_rados.Rados.assert_called_once_with(
            rados_id="admin",
            conffile="/tmp/ceph.conf",
            conf={"keyring": "/tmp/admin.keyring"},
        )
        cluster.connect.assert_called_once_with(timeout=30)
        cluster.create_pool.assert_called_once_with("omap-test")
        assert client.is_connected is True

    def test_connect_existing_pool(self, fake_rados, connection):
        """Test an existing pool is left alone."""
        cluster = fake_rados.Rados.return_value
        cluster.pool_exists.return_value = True

        with patch("loadgen.store.rados_client._import_rados", return_value=fake_rados):
            RadosStoreClient(connection).connect()

        cluster.create_pool.assert_not_called()

    def test_connect_failure(self, fake_rados, connection):
        """Test a failed cluster connect raises a connection error."""
        fake_rados.Rados.return_value.connect.side_effect = FakeRadosError("timed out")

        with patch("loadgen.store.rados_client._import_rados", return_value=fake_rados):
            client = RadosStoreClient(connection)
            with pytest.raises(StoreConnectionError, match="timed out"):
                client.connect()

        assert client.is_connected is False

    def test_pool_failure_shuts_down(self, fake_rados, connection):
        """Test a pool error releases the cluster handle."""
        cluster = fake_rados.Rados.return_value
        cluster.pool_exists.side_effect = FakeRadosError("EPERM")

        with patch("loadgen.store.rados_client._import_rados", return_value=fake_rados):
            with pytest.raises(StoreConnectionError, match="omap-test"):
                RadosStoreClient(connection).connect()

        cluster.shutdown.assert_called_once()

    def test_open_channel_requires_connect(self, connection):
        """Test channels cannot be opened before connect."""
        with pytest.raises(StoreConnectionError):
            RadosStoreClient(connection).open_channel()

    def test_open_channel_and_shutdown(self, fake_rados, connection):
        """Test each channel gets its own I/O context."""
        cluster = fake_rados.Rados.return_value

        with patch("loadgen.store.rados_client._import_rados", return_value=fake_rados):
            client = RadosStoreClient(connection)
            client.connect()
            channel = client.open_channel()
            client.shutdown()

        assert isinstance(channel, RadosChannel)
        cluster.open_ioctx.assert_called_once_with("omap-test")
        cluster.shutdown.assert_called_once()
        assert client.is_connected is False


class TestRadosChannel:
    """Tests for omap operations through a channel."""

    @pytest.fixture
    def ioctx(self):
        return MagicMock()

    @pytest.fixture
    def channel(self, fake_rados, ioctx):
        return RadosChannel(fake_rados, ioctx)

    def test_write_placeholder(self, channel, ioctx):
        """Test the placeholder replaces the object data."""
        channel.write_placeholder("obj", b"<nihil>")

        ioctx.write_full.assert_called_once_with("obj", b"<nihil>")

    def test_set_entries(self, channel, ioctx, fake_rados):
        """Test entries go through a write operation."""
        write_op = fake_rados.WriteOpCtx.return_value.__enter__.return_value

        channel.set_entries("obj", {"k1": b"v1"})

        ioctx.set_omap.assert_called_once_with(write_op, ("k1",), (b"v1",))
        ioctx.operate_write_op.assert_called_once_with(write_op, "obj")

    def test_set_entries_failure(self, channel, ioctx):
        """Test a failed write operation raises a write error."""
        ioctx.operate_write_op.side_effect = FakeRadosError("ENOSPC")

        with pytest.raises(StoreWriteError, match="ENOSPC"):
            channel.set_entries("obj", {"k1": b"v1"})

    def test_get_keys_full_page(self, channel, ioctx, fake_rados):
        """Test a full page reports that more keys may follow."""
        read_op = fake_rados.ReadOpCtx.return_value.__enter__.return_value
        ioctx.get_omap_keys.return_value = (iter([("a", b""), ("b", b"")]), 0)

        keys, more = channel.get_keys_page("obj", "", 2)

        assert keys == ["a", "b"]
        assert more is True
        ioctx.get_omap_keys.assert_called_once_with(read_op, "", 2)
        ioctx.operate_read_op.assert_called_once_with(read_op, "obj")

    def test_get_keys_short_page(self, channel, ioctx):
        """Test a short page does not end the scan."""
        ioctx.get_omap_keys.return_value = (iter([("c", b"")]), 0)

        assert channel.get_keys_page("obj", "b", 2) == (["c"], True)

    def test_get_keys_empty_page(self, channel, ioctx):
        """Test an empty page ends the scan."""
        ioctx.get_omap_keys.return_value = (iter([]), 0)

        assert channel.get_keys_page("obj", "c", 2) == ([], False)

    def test_get_keys_missing_object(self, channel, ioctx):
        """Test a missing object maps to not found."""
        ioctx.get_omap_keys.return_value = (iter([]), 0)
        ioctx.operate_read_op.side_effect = FakeObjectNotFound("ENOENT")

        with pytest.raises(StoreObjectNotFound):
            channel.get_keys_page("obj", "", 2)

    def test_get_keys_failure(self, channel, ioctx):
        """Test other read errors map to read errors."""
        ioctx.get_omap_keys.return_value = (iter([]), 0)
        ioctx.operate_read_op.side_effect = FakeRadosError("EIO")

        with pytest.raises(StoreReadError, match="EIO"):
            channel.get_keys_page("obj", "", 2)

    def test_remove_object(self, channel, ioctx):
        """Test removal and its error mapping."""
        channel.remove_object("obj")
        ioctx.remove_object.assert_called_once_with("obj")

        ioctx.remove_object.side_effect = FakeObjectNotFound("ENOENT")
        with pytest.raises(StoreObjectNotFound):
            channel.remove_object("obj")

        ioctx.remove_object.side_effect = FakeRadosError("EBUSY")
        with pytest.raises(StoreRemoveError, match="EBUSY"):
            channel.remove_object("obj")

    def test_close(self, channel, ioctx):
        """Test closing twice releases the I/O context once."""
        channel.close()
        channel.close()

        ioctx.close.assert_called_once()


class CappedIoctx:
    """I/O context serving one object's keys, capped per request like an OSD."""

    def __init__(self, keys, cap):
        self.keys = sorted(keys)
        self.cap = cap
        self.requests = 0

    def get_omap_keys(self, read_op, start_after, max_return):
        self.requests += 1
        page = [k for k in self.keys if k > start_after][:min(max_return, self.cap)]
        return iter([(k, None) for k in page]), 0

    def operate_read_op(self, read_op, object_name):
        pass

    def close(self):
        pass


@pytest.mark.asyncio
class TestRadosScan:
    """Tests for full scans over the RADOS backend."""

    @pytest.fixture
    def store(self, fake_rados, connection):
        ioctx = CappedIoctx([f"k{i:05d}" for i in range(3000)], cap=1024)
        fake_rados.Rados.return_value.open_ioctx.return_value = ioctx

        with patch("loadgen.store.rados_client._import_rados", return_value=fake_rados):
            client = RadosStoreClient(connection)
            client.connect()
        client.ioctx = ioctx
        return client

    async def test_page_size_above_osd_cap(self, store):
        """Test a scan keeps going when the OSD returns fewer keys than asked."""
        report = await CursorScanner(store, WorkloadConfig(page_size=2000), "obj").run()

        assert report.keys_read == 3000
        assert report.last_key == "k02999"
        assert report.status == OperationStatus.OK
        assert store.ioctx.requests == 4

    async def test_exact_multiple_of_page_size(self, store):
        """Test the last full page is followed by one empty fetch."""
        store.ioctx.keys = store.ioctx.keys[:2048]

        report = await CursorScanner(store, WorkloadConfig(page_size=1024), "obj").run()

        assert report.keys_read == 2048
        assert report.pages == 3

    async def test_empty_object_single_fetch(self, store):
        """Test an object without keys is scanned with one fetch."""
        store.ioctx.keys = []

        report = await CursorScanner(store, WorkloadConfig(page_size=1024), "obj").run()

        assert report.keys_read == 0
        assert store.ioctx.requests == 1
