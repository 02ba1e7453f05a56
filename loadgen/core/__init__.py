"""Workload engine."""

from loadgen.core.keys import KeySequence, generate_value, ensure_disjoint_tags
from loadgen.core.workers import BulkInsertWorker, CursorScanner, ObjectEraser
from loadgen.core.driver import WorkloadDriver
from loadgen.core.reporter import ProgressReporter

__all__ = [
    "KeySequence",
    "generate_value",
    "ensure_disjoint_tags",
    "BulkInsertWorker",
    "CursorScanner",
    "ObjectEraser",
    "WorkloadDriver",
    "ProgressReporter",
]
