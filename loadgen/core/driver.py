"""Workload driver: one-shot dispatch and churn loops."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Optional

from common.messaging.events import EventType
from common.models.results import (
    ChurnStats,
    InsertReport,
    OperationResult,
    RunSummary,
    ScanReport,
)
from common.models.workload import WorkloadConfig, WorkloadKind
from common.utils import generate_run_id
from loadgen.core.keys import ensure_disjoint_tags
from loadgen.core.reporter import ProgressReporter
from loadgen.core.workers import BulkInsertWorker, CursorScanner, ObjectEraser
from loadgen.store.base import StoreClient

logger = logging.getLogger(__name__)


class WorkloadDriver:
    """Run one workload against a connected store.

    One-shot workloads (set, get, clear) return once every worker they
    started has finished. Churn workloads loop until ``stop()`` is called or
    ``config.max_cycles`` cycles have completed.
    """

    def __init__(
        self,
        config: WorkloadConfig,
        store: StoreClient,
        reporter: Optional[ProgressReporter] = None,
        run_id: Optional[str] = None,
    ):
        self.config = config
        self.store = store
        self.reporter = reporter
        self.run_id = run_id or generate_run_id()

        self._executor = ThreadPoolExecutor(
            max_workers=config.concurrency,
            thread_name_prefix="omap-io",
        )
        self._stop_event = asyncio.Event()
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Ask the running workload to wind down."""
        if not self._stop_event.is_set():
            logger.info(f"Stop requested for run {self.run_id}")
        self._stop_event.set()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.close()

    async def run(self, kind: WorkloadKind) -> RunSummary:
        """Run the selected workload and return its summary."""
        if self._is_running:
            raise RuntimeError(f"Run {self.run_id} is already in progress")

        kind = WorkloadKind(kind)
        summary = RunSummary(run_id=self.run_id, kind=kind)
        logger.info(f"Starting {kind.value} workload (run {self.run_id})")
        self._is_running = True
        await self._report_workload(EventType.WORKLOAD_STARTED, kind)

        try:
            if kind == WorkloadKind.SET:
                summary.inserts = await self.run_insert()
            elif kind == WorkloadKind.GET:
                summary.scan = await self.run_scan()
            elif kind == WorkloadKind.CLEAR:
                summary.erase = await self.run_erase()
            elif kind == WorkloadKind.CHURN:
                summary.churn = await self.run_churn()
            elif kind == WorkloadKind.MULTI_CHURN:
                summary.churn = await self.run_multi_churn()
        finally:
            self._is_running = False
            summary.completed_at = datetime.utcnow()

        summary.cancelled = self.stop_requested
        event_type = EventType.WORKLOAD_STOPPED if summary.cancelled else EventType.WORKLOAD_COMPLETED
        await self._report_workload(event_type, kind, summary.model_dump(mode="json"))
        logger.info(
            f"Finished {kind.value} workload (run {self.run_id}): "
            f"{summary.keys_written} keys written, {summary.failures} failures"
        )
        return summary

    # One-shot workloads

    async def run_insert(self) -> list[InsertReport]:
        """Insert ``key_count`` keys per partition into the configured object."""
        tags = ensure_disjoint_tags(self.config.producer_tags)
        object_name = self.config.object_name
        logger.info(
            f"Inserting {self.config.key_count} keys x {len(tags)} partitions into {object_name}"
        )

        workers = [
            BulkInsertWorker(
                self.store,
                self.config,
                object_name,
                producer_tag=tag,
                executor=self._executor,
                stop_event=self._stop_event,
            )
            for tag in tags
        ]
        results = await asyncio.gather(*(w.run() for w in workers), return_exceptions=True)

        reports: list[InsertReport] = []
        errors: list[BaseException] = []
        for tag, result in zip(tags, results):
            if isinstance(result, BaseException):
                logger.error(f"Insert partition {tag} on {object_name} aborted: {result}")
                errors.append(result)
                continue
            reports.append(result)
            await self._report_operation(EventType.INSERT_COMPLETED, result.model_dump(mode="json"))

        # Every partition has finished by now; connection-level errors are fatal
        if errors:
            raise errors[0]
        return reports

    async def run_scan(self, on_key: Optional[Callable[[str], None]] = None) -> ScanReport:
        """Enumerate every key of the configured object."""
        scanner = CursorScanner(
            self.store,
            self.config,
            self.config.object_name,
            executor=self._executor,
            stop_event=self._stop_event,
        )
        report = await scanner.run(on_key=on_key)
        await self._report_operation(EventType.SCAN_COMPLETED, report.model_dump(mode="json"))
        return report

    async def run_erase(self) -> OperationResult:
        """Remove the configured object."""
        result = await self._erase_object(self.config.object_name)
        await self._report_operation(EventType.ERASE_COMPLETED, result.model_dump(mode="json"))
        return result

    # Churn workloads

    async def run_churn(self) -> ChurnStats:
        """Create, fill and remove one fresh object per cycle."""
        stats = ChurnStats()
        cycle = 0

        while not self._should_stop(cycle):
            object_name = self.config.churn_object_name(cycle)

            report = await self._insert_object(object_name)
            stats.add_insert(report)
            # Erase even after a cancelled insert so nothing is left behind
            stats.add_erase(await self._erase_object(object_name))

            if report.cancelled:
                break

            stats.cycles_completed += 1
            logger.info(
                f"Churn cycle {cycle} done: {object_name} "
                f"({report.written} keys, {report.failures} failures)"
            )
            await self._report_cycle(cycle, stats)
            cycle += 1

        return stats

    async def run_multi_churn(self) -> ChurnStats:
        """Fill ``object_count`` objects, then remove them all, every cycle."""
        stats = ChurnStats()
        cycle = 0

        while not self._should_stop(cycle):
            created: list[str] = []
            interrupted = False

            for index in range(self.config.object_count):
                if self.stop_requested:
                    interrupted = True
                    break
                object_name = self.config.churn_object_name(index)
                report = await self._insert_object(object_name)
                stats.add_insert(report)
                created.append(object_name)
                if report.cancelled:
                    interrupted = True
                    break

            for object_name in created:
                stats.add_erase(await self._erase_object(object_name))

            if interrupted:
                break

            stats.cycles_completed += 1
            logger.info(
                f"Multi-object churn cycle {cycle} done: {len(created)} objects, "
                f"{stats.keys_written} keys written so far"
            )
            await self._report_cycle(cycle, stats)
            cycle += 1

        return stats

    # Helpers

    def _should_stop(self, cycle: int) -> bool:
        if self.stop_requested:
            return True
        max_cycles = self.config.max_cycles
        return max_cycles is not None and cycle >= max_cycles

    async def _insert_object(self, object_name: str) -> InsertReport:
        worker = BulkInsertWorker(
            self.store,
            self.config,
            object_name,
            producer_tag=1,
            executor=self._executor,
            stop_event=self._stop_event,
        )
        return await worker.run()

    async def _erase_object(self, object_name: str) -> OperationResult:
        eraser = ObjectEraser(self.store, object_name, executor=self._executor)
        return await eraser.run()

    async def _report_workload(self, event_type: EventType, kind: WorkloadKind, summary: dict = None) -> None:
        if self.reporter is not None:
            await self.reporter.report_workload(event_type, kind.value, summary)

    async def _report_operation(self, event_type: EventType, result: dict) -> None:
        if self.reporter is not None:
            await self.reporter.report_operation(event_type, result)

    async def _report_cycle(self, cycle: int, stats: ChurnStats) -> None:
        if self.reporter is not None:
            await self.reporter.report_cycle(cycle, stats.model_dump())
