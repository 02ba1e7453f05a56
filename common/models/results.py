"""Typed outcomes of load operations."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from common.models.workload import WorkloadKind


MAX_RECORDED_ERRORS = 20


class OperationStatus(str, Enum):
    """Outcome of a single store operation or worker run."""
    OK = "ok"
    FAILED = "failed"
    NOT_FOUND = "not_found"
    CANCELLED = "cancelled"


class OperationResult(BaseModel):
    """Result of a single operation against one object."""
    operation: str = Field(..., description="Operation name (set, remove, ...)")
    object_name: str
    status: OperationStatus = Field(default=OperationStatus.OK)
    key: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OperationStatus.OK


class InsertReport(BaseModel):
    """Outcome of one BulkInsertWorker run (one partition)."""
    object_name: str
    producer_tag: int
    requested: int = 0
    written: int = 0
    failed: int = 0
    placeholder_written: bool = False
    cancelled: bool = False
    errors: list[str] = Field(default_factory=list)

    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None

    def record_failure(self, message: str) -> None:
        """Count a failed entry and keep the first few messages."""
        self.failed += 1
        if len(self.errors) < MAX_RECORDED_ERRORS:
            self.errors.append(message)

    @property
    def attempted(self) -> int:
        return self.written + self.failed

    @property
    def failures(self) -> int:
        """Failed entry sets plus a failed placeholder write."""
        return self.failed + (0 if self.placeholder_written else 1)

    @property
    def status(self) -> OperationStatus:
        if self.cancelled:
            return OperationStatus.CANCELLED
        if self.failures:
            return OperationStatus.FAILED
        return OperationStatus.OK

    @property
    def duration_seconds(self) -> float:
        end_time = self.completed_at or datetime.utcnow()
        return (end_time - self.started_at).total_seconds()


class ScanReport(BaseModel):
    """Outcome of one CursorScanner run."""
    object_name: str
    keys_read: int = 0
    pages: int = 0
    last_key: Optional[str] = None
    status: OperationStatus = Field(default=OperationStatus.OK)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != OperationStatus.FAILED


class ChurnStats(BaseModel):
    """Running totals for a churn workload."""
    cycles_completed: int = 0
    objects_created: int = 0
    objects_erased: int = 0
    keys_written: int = 0
    write_failures: int = 0
    erase_failures: int = 0

    def add_insert(self, report: InsertReport) -> None:
        self.objects_created += 1
        self.keys_written += report.written
        self.write_failures += report.failures

    def add_erase(self, result: OperationResult) -> None:
        if result.ok:
            self.objects_erased += 1
        else:
            self.erase_failures += 1


class RunSummary(BaseModel):
    """Aggregated outcome of one driver run."""
    run_id: str
    kind: WorkloadKind
    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
    cancelled: bool = False

    inserts: list[InsertReport] = Field(default_factory=list)
    scan: Optional[ScanReport] = None
    erase: Optional[OperationResult] = None
    churn: Optional[ChurnStats] = None

    @property
    def keys_written(self) -> int:
        if self.churn is not None:
            return self.churn.keys_written
        return sum(r.written for r in self.inserts)

    @property
    def failures(self) -> int:
        """Total failed operations across the run."""
        total = sum(r.failures for r in self.inserts)
        if self.scan is not None and not self.scan.ok:
            total += 1
        if self.erase is not None and not self.erase.ok:
            total += 1
        if self.churn is not None:
            total += self.churn.write_failures + self.churn.erase_failures
        return total

    @property
    def duration_seconds(self) -> float:
        end_time = self.completed_at or datetime.utcnow()
        return (end_time - self.started_at).total_seconds()
