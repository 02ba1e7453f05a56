"""Workload configuration models."""

from __future__ import annotations

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from common.models.cluster import CephConnection


DEFAULT_OBJECT_NAME = "myobject"
DEFAULT_KEY_COUNT = 100_000
DEFAULT_OBJECT_COUNT = 10
DEFAULT_PAGE_SIZE = 1024
DEFAULT_VALUE_SIZE = 35  # len(b"now is the time for all good beings")


class WorkloadKind(str, Enum):
    """Workload selected for a run."""
    GET = "get"                  # one-shot paginated scan
    SET = "set"                  # one-shot (partitioned) insert
    CLEAR = "clear"              # one-shot object removal
    CHURN = "churn"              # single-object create/delete churn
    MULTI_CHURN = "multi_churn"  # multi-object create/delete churn

    @property
    def is_churn(self) -> bool:
        return self in (WorkloadKind.CHURN, WorkloadKind.MULTI_CHURN)


class WorkloadConfig(BaseModel):
    """Complete, immutable workload configuration.

    Built once at startup and handed to every component; nothing mutates it
    afterwards.
    """
    model_config = ConfigDict(frozen=True)

    # Cluster connection
    connection: CephConnection = Field(default_factory=CephConnection)

    # Target objects
    object_name: str = Field(
        default=DEFAULT_OBJECT_NAME,
        min_length=1,
        description="Target object name, or base name for churn objects"
    )
    object_count: int = Field(
        default=DEFAULT_OBJECT_COUNT,
        ge=1,
        description="Objects per cycle for multi-object churn"
    )

    # Entry generation
    key_count: int = Field(
        default=DEFAULT_KEY_COUNT,
        ge=0,
        description="Keys written per insertion pass (per partition)"
    )
    value_size: int = Field(
        default=DEFAULT_VALUE_SIZE,
        ge=0,
        description="Size in bytes of each omap value"
    )
    counter_width: int = Field(
        default=0,
        ge=0,
        le=20,
        description="Zero-pad key counters to this width (0 = unpadded)"
    )

    # Execution
    concurrency: int = Field(
        default=1,
        ge=1,
        le=256,
        description="Concurrent insert partitions (threads) for the set workload"
    )
    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        description="Maximum keys fetched per page during a scan"
    )
    max_cycles: Optional[int] = Field(
        default=None,
        ge=1,
        description="Stop churn workloads after this many cycles (None = run until stopped)"
    )
    verbose: bool = Field(default=False, description="Log every key written or read")

    @field_validator("object_name")
    @classmethod
    def validate_object_name(cls, v: str) -> str:
        """Object names are used verbatim as RADOS object ids."""
        if v != v.strip():
            raise ValueError("object_name must not have leading or trailing whitespace")
        return v

    def churn_object_name(self, index: int) -> str:
        """Name of the churn object with the given cycle or slot index."""
        return f"{self.object_name}_{index}"

    @property
    def producer_tags(self) -> list[int]:
        """ProducerTags for the concurrent insert partitions."""
        return list(range(1, self.concurrency + 1))
