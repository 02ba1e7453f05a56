"""Progress events published while a workload runs."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Types of progress events."""

    # Run lifecycle
    WORKLOAD_STARTED = "workload.started"
    WORKLOAD_COMPLETED = "workload.completed"
    WORKLOAD_STOPPED = "workload.stopped"

    # Operations
    INSERT_COMPLETED = "insert.completed"
    SCAN_COMPLETED = "scan.completed"
    ERASE_COMPLETED = "erase.completed"

    # Churn
    CHURN_CYCLE = "churn.cycle"


class Event(BaseModel):
    """Base event structure for all messages."""

    type: EventType = Field(..., description="Event type")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    source: str = Field(..., description="Source identifier (hostname of the load generator)")
    run_id: Optional[str] = Field(default=None)
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
            "run_id": self.run_id,
            "payload": self.payload,
        }

    @classmethod
    def from_json(cls, data: dict) -> "Event":
        """Create event from JSON dict."""
        return cls(
            type=EventType(data["type"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            source=data["source"],
            run_id=data.get("run_id"),
            payload=data.get("payload", {}),
        )


# Convenience functions for creating common events

def create_workload_event(
    event_type: EventType,
    source: str,
    run_id: str,
    kind: str,
    summary: dict = None,
) -> Event:
    """Create a run lifecycle event."""
    return Event(
        type=event_type,
        source=source,
        run_id=run_id,
        payload={
            "kind": kind,
            "summary": summary or {},
        },
    )


def create_operation_event(
    event_type: EventType,
    source: str,
    run_id: str,
    result: dict,
) -> Event:
    """Create an insert/scan/erase completion event."""
    return Event(
        type=event_type,
        source=source,
        run_id=run_id,
        payload={"result": result},
    )


def create_churn_cycle_event(
    source: str,
    run_id: str,
    cycle: int,
    stats: dict,
) -> Event:
    """Create a churn cycle completion event."""
    return Event(
        type=EventType.CHURN_CYCLE,
        source=source,
        run_id=run_id,
        payload={
            "cycle": cycle,
            "stats": stats,
        },
    )
