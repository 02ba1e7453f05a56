"""Workers that drive omap traffic against a single object.

Every store call is blocking, so workers hand them to a thread pool and
await the result. Per-operation store errors are logged and folded into the
worker's report; only connection errors escape.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from concurrent.futures import Executor
from datetime import datetime
from typing import Callable, Optional

from common.models.results import (
    InsertReport,
    OperationResult,
    OperationStatus,
    ScanReport,
)
from common.models.workload import WorkloadConfig
from loadgen.core.keys import PLACEHOLDER, KeySequence, generate_value
from loadgen.store.base import (
    ObjectChannel,
    StoreClient,
    StoreObjectNotFound,
    StoreReadError,
    StoreRemoveError,
    StoreWriteError,
)

logger = logging.getLogger(__name__)


class _ObjectWorker:
    """Shared plumbing: thread hand-off and stop checks."""

    def __init__(
        self,
        store: StoreClient,
        object_name: str,
        executor: Optional[Executor] = None,
        stop_event: Optional[asyncio.Event] = None,
    ):
        self.store = store
        self.object_name = object_name
        self.executor = executor
        self.stop_event = stop_event

    @property
    def stop_requested(self) -> bool:
        return self.stop_event is not None and self.stop_event.is_set()

    async def _call(self, fn: Callable, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, functools.partial(fn, *args))

    async def _open_channel(self) -> ObjectChannel:
        return await self._call(self.store.open_channel)


class BulkInsertWorker(_ObjectWorker):
    """Write ``key_count`` generated entries into one object.

    Entries are set one per call, each attempted once. A failed set is
    logged and counted and the loop moves on to the next key.
    """

    def __init__(
        self,
        store: StoreClient,
        config: WorkloadConfig,
        object_name: str,
        producer_tag: int = 1,
        executor: Optional[Executor] = None,
        stop_event: Optional[asyncio.Event] = None,
    ):
        super().__init__(store, object_name, executor, stop_event)
        self.config = config
        self.producer_tag = producer_tag
        self.keys = KeySequence(producer_tag, counter_width=config.counter_width)

    async def run(self) -> InsertReport:
        report = InsertReport(
            object_name=self.object_name,
            producer_tag=self.producer_tag,
            requested=self.config.key_count,
        )
        value = generate_value(self.config.value_size)

        channel = await self._open_channel()
        try:
            try:
                await self._call(channel.write_placeholder, self.object_name, PLACEHOLDER)
                report.placeholder_written = True
            except StoreWriteError as e:
                logger.error(f"Placeholder write failed on {self.object_name}: {e}")

            for _ in range(self.config.key_count):
                if self.stop_requested:
                    report.cancelled = True
                    logger.info(
                        f"Insert into {self.object_name} (tag {self.producer_tag}) "
                        f"stopped after {report.attempted} keys"
                    )
                    break

                key = self.keys.next_key()
                try:
                    await self._call(channel.set_entries, self.object_name, {key: value})
                except StoreWriteError as e:
                    logger.error(f"omap set failed on {self.object_name} for key {key}: {e}")
                    report.record_failure(str(e))
                    continue

                report.written += 1
                if self.config.verbose:
                    logger.info(f"inserted: key {key}")
        finally:
            await self._call(channel.close)

        report.completed_at = datetime.utcnow()
        logger.debug(
            f"Insert into {self.object_name} (tag {self.producer_tag}): "
            f"{report.written} written, {report.failed} failed"
        )
        return report


class CursorScanner(_ObjectWorker):
    """Enumerate every omap key of an object, one bounded page at a time.

    The marker starts empty and follows the last key seen, so each fetch
    resumes right after the previous page. With no concurrent writers each
    key is visited exactly once, in ascending order.
    """

    def __init__(
        self,
        store: StoreClient,
        config: WorkloadConfig,
        object_name: str,
        executor: Optional[Executor] = None,
        stop_event: Optional[asyncio.Event] = None,
    ):
        super().__init__(store, object_name, executor, stop_event)
        self.page_size = config.page_size
        self.verbose = config.verbose

    async def run(self, on_key: Optional[Callable[[str], None]] = None) -> ScanReport:
        report = ScanReport(object_name=self.object_name)
        marker = ""
        more = True

        channel = await self._open_channel()
        try:
            while more:
                if self.stop_requested:
                    report.status = OperationStatus.CANCELLED
                    break

                try:
                    keys, more = await self._call(
                        channel.get_keys_page, self.object_name, marker, self.page_size
                    )
                except StoreObjectNotFound as e:
                    logger.warning(f"Scan of {self.object_name}: {e}")
                    report.status = OperationStatus.NOT_FOUND
                    break
                except StoreReadError as e:
                    logger.error(f"Scan of {self.object_name} failed after {report.keys_read} keys: {e}")
                    report.status = OperationStatus.FAILED
                    report.error = str(e)
                    break

                report.pages += 1
                for key in keys:
                    if marker and key <= marker:
                        report.status = OperationStatus.FAILED
                        report.error = f"out-of-order page: {key!r} after {marker!r}"
                        logger.error(f"Scan of {self.object_name}: {report.error}")
                        more = False
                        break
                    marker = key
                    report.keys_read += 1
                    if on_key is not None:
                        on_key(key)
                    if self.verbose:
                        logger.info(f"\tkey: {key}")

                if more and not keys:
                    logger.warning(f"Scan of {self.object_name}: empty page with more set, stopping")
                    break
        finally:
            await self._call(channel.close)

        report.last_key = marker or None
        logger.info(f"read {report.keys_read} keys from {self.object_name}")
        return report


class ObjectEraser(_ObjectWorker):
    """Remove one object. A single attempt; failures are returned, not raised."""

    async def run(self) -> OperationResult:
        result = OperationResult(operation="remove", object_name=self.object_name)

        channel = await self._open_channel()
        try:
            await self._call(channel.remove_object, self.object_name)
        except StoreObjectNotFound as e:
            logger.warning(f"Remove of {self.object_name}: {e}")
            result.status = OperationStatus.NOT_FOUND
            result.error = str(e)
        except StoreRemoveError as e:
            logger.error(f"Remove of {self.object_name} failed: {e}")
            result.status = OperationStatus.FAILED
            result.error = str(e)
        finally:
            await self._call(channel.close)

        if result.ok:
            logger.debug(f"Removed {self.object_name}")
        return result
