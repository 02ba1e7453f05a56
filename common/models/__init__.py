"""Common data models for the omap load generator."""

from common.models.cluster import CephConnection
from common.models.workload import WorkloadConfig, WorkloadKind
from common.models.results import (
    OperationStatus,
    OperationResult,
    InsertReport,
    ScanReport,
    ChurnStats,
    RunSummary,
)

__all__ = [
    "CephConnection",
    "WorkloadConfig",
    "WorkloadKind",
    "OperationStatus",
    "OperationResult",
    "InsertReport",
    "ScanReport",
    "ChurnStats",
    "RunSummary",
]
