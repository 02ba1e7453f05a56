"""Redis client for publishing progress events."""

from __future__ import annotations

import json
import logging
from typing import Optional

import redis.asyncio as redis

from common.messaging.events import Event

logger = logging.getLogger(__name__)


class RedisClient:
    """Async Redis client for pub/sub progress messaging."""

    # Channel prefixes
    CHANNEL_PROGRESS = "omap:progress"

    def __init__(self, url: str = "redis://localhost:6379"):
        self.url = url
        self._redis: Optional[redis.Redis] = None

    @property
    def is_connected(self) -> bool:
        return self._redis is not None

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._redis is not None:
            return

        logger.info(f"Connecting to Redis at {self.url}")
        self._redis = redis.from_url(self.url, decode_responses=True)

        # Test connection
        try:
            await self._redis.ping()
        except Exception:
            await self._redis.close()
            self._redis = None
            raise
        logger.info("Connected to Redis successfully")

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.close()
            self._redis = None

        logger.info("Disconnected from Redis")

    async def publish(self, channel: str, event: Event) -> int:
        """Publish an event to a channel."""
        if not self._redis:
            raise RuntimeError("Not connected to Redis")

        message = json.dumps(event.to_json())
        result = await self._redis.publish(channel, message)
        logger.debug(f"Published to {channel}: {event.type.value}")
        return result

    async def publish_progress(self, run_id: str, event: Event) -> int:
        """Publish a progress event for a run."""
        channel = f"{self.CHANNEL_PROGRESS}:{run_id}"
        return await self.publish(channel, event)
