"""Common utilities and models shared across the engine and the CLI."""

from common.models.cluster import CephConnection
from common.models.workload import WorkloadConfig, WorkloadKind
from common.models.results import OperationStatus, OperationResult, RunSummary

__all__ = [
    "CephConnection",
    "WorkloadConfig",
    "WorkloadKind",
    "OperationStatus",
    "OperationResult",
    "RunSummary",
]
