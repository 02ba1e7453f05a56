"""Pytest configuration and shared fixtures."""

import tempfile
import shutil
from pathlib import Path
from typing import Callable, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest

from common.messaging.redis_client import RedisClient
from common.models.workload import WorkloadConfig
from loadgen.store.base import StoreRemoveError, StoreWriteError
from loadgen.store.memory import MemoryChannel, MemoryStoreClient


class FlakyChannel(MemoryChannel):
    """Memory channel that fails selected operations."""

    def set_entries(self, object_name, entries):
        for key in entries:
            if self._store.should_fail_key(key):
                raise StoreWriteError(f"injected set failure for {key}")
        super().set_entries(object_name, entries)

    def write_placeholder(self, object_name, data):
        if object_name in self._store.fail_placeholders:
            raise StoreWriteError(f"injected placeholder failure for {object_name}")
        super().write_placeholder(object_name, data)

    def remove_object(self, object_name):
        if object_name in self._store.fail_removes:
            raise StoreRemoveError(f"injected remove failure for {object_name}")
        super().remove_object(object_name)


class FlakyStoreClient(MemoryStoreClient):
    """Memory store with failure injection."""

    def __init__(self, fail_every: int = 0):
        super().__init__()
        self.fail_every = fail_every
        self.fail_placeholders: set[str] = set()
        self.fail_removes: set[str] = set()
        self._set_calls = 0

    def should_fail_key(self, key: str) -> bool:
        self._set_calls += 1
        return bool(self.fail_every) and self._set_calls % self.fail_every == 0

    def open_channel(self):
        super().open_channel()
        return FlakyChannel(self)


def live_object_counts(history: list[tuple[str, str]]) -> list[int]:
    """Replay a store history into the number of live objects after each step."""
    counts = []
    live = 0
    for operation, _ in history:
        live += 1 if operation == "create" else -1
        counts.append(live)
    return counts


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def memory_store() -> MemoryStoreClient:
    """Create a connected in-memory store."""
    store = MemoryStoreClient()
    store.connect()
    return store


@pytest.fixture
def flaky_store() -> FlakyStoreClient:
    """Create a connected store that fails every third omap set."""
    store = FlakyStoreClient(fail_every=3)
    store.connect()
    return store


@pytest.fixture
def make_config() -> Callable[..., WorkloadConfig]:
    """Factory for small workload configurations."""
    def _make(**kwargs) -> WorkloadConfig:
        values = {
            "object_name": "testobj",
            "key_count": 50,
            "value_size": 16,
            "object_count": 3,
            "page_size": 16,
        }
        values.update(kwargs)
        return WorkloadConfig(**values)
    return _make


@pytest.fixture
def mock_redis_client() -> MagicMock:
    """Create a mock Redis client."""
    mock = MagicMock(spec=RedisClient)
    mock.publish = AsyncMock(return_value=1)
    mock.publish_progress = AsyncMock(return_value=1)
    mock.connect = AsyncMock()
    mock.disconnect = AsyncMock()
    return mock


@pytest.fixture
def sample_workload_file(temp_dir: Path) -> Path:
    """Workload YAML file."""
    path = temp_dir / "workload.yaml"
    path.write_text(
        "object_name: bucket-index\n"
        "key_count: 2000\n"
        "concurrency: 4\n"
        "connection:\n"
        "  pool: churn-pool\n"
        "  user: admin\n"
    )
    return path
