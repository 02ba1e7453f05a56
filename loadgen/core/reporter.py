"""Progress reporter publishing run events over Redis."""

from __future__ import annotations

import logging

from common.messaging.events import (
    Event,
    EventType,
    create_churn_cycle_event,
    create_operation_event,
    create_workload_event,
)
from common.messaging.redis_client import RedisClient

logger = logging.getLogger(__name__)


class ProgressReporter:
    """Report workload progress for one run.

    Publishing is best effort: failures are logged and never reach the
    workload.
    """

    def __init__(self, source: str, run_id: str, redis_client: RedisClient):
        self.source = source
        self.run_id = run_id
        self.redis_client = redis_client
        self.published = 0

    async def report_workload(self, event_type: EventType, kind: str, summary: dict = None) -> None:
        """Report a run lifecycle transition."""
        await self._publish(create_workload_event(event_type, self.source, self.run_id, kind, summary))

    async def report_operation(self, event_type: EventType, result: dict) -> None:
        """Report a finished insert, scan or erase."""
        await self._publish(create_operation_event(event_type, self.source, self.run_id, result))

    async def report_cycle(self, cycle: int, stats: dict) -> None:
        """Report a finished churn cycle."""
        await self._publish(create_churn_cycle_event(self.source, self.run_id, cycle, stats))

    async def _publish(self, event: Event) -> None:
        try:
            await self.redis_client.publish_progress(self.run_id, event)
            self.published += 1
        except Exception as e:
            logger.error(f"Failed to report {event.type.value}: {e}")
