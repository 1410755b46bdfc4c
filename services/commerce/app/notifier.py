"""
Commerce Service: event publisher

Events go to a Redis Stream whose key is the event name. Streams are
persisted by Redis and read through consumer groups, which gives
at-least-once delivery. Publishing only means Redis accepted the entry; no
consumer acknowledgement is awaited.

One publisher is shared by the whole process. The client is created on the
first publish and dropped on a connection failure, so the next publish
reconnects.
"""

import asyncio
import json
import logging

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from .exceptions import NotificationError

logger = logging.getLogger(__name__)


class EventPublisher:
    def __init__(self, redis_url: str, stream_maxlen: int | None = None) -> None:
        self.redis_url = redis_url
        self.stream_maxlen = stream_maxlen
        self._redis: aioredis.Redis | None = None
        self._connect_lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._redis is not None

    async def publish(self, event_name: str, payload: dict) -> str:
        """Append an event to the `event_name` stream and return its entry id."""
        try:
            client = await self._ensure_connection()
            message_id = await client.xadd(
                event_name,
                {
                    "event_type": event_name,
                    "data": json.dumps(payload, default=str),
                },
                maxlen=self.stream_maxlen,
                approximate=True,
            )
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.error("Failed to publish event %s: %s", event_name, e)
            await self._reset()
            raise NotificationError(event_name, str(e)) from e

        logger.info("Published event %s to stream (id=%s)", event_name, message_id)
        return str(message_id)

    async def close(self) -> None:
        await self._reset()

    async def _ensure_connection(self) -> aioredis.Redis:
        if self._redis is not None:
            return self._redis

        # Concurrent first publishes share one client.
        async with self._connect_lock:
            if self._redis is not None:
                return self._redis

            client = aioredis.from_url(self.redis_url, decode_responses=True)
            try:
                await client.ping()
            except Exception:
                await client.aclose()
                raise
            self._redis = client
            logger.info("Connected to Redis at %s", self.redis_url)
            return client

    async def _reset(self) -> None:
        client, self._redis = self._redis, None
        if client is not None:
            try:
                await client.aclose()
            except RedisConnectionError:
                logger.debug("Ignoring error while closing Redis client", exc_info=True)
