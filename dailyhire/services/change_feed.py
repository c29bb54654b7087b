"""
Change notifications over Redis pub/sub.

Publishers send "something changed, re-fetch" events on channels named
`<table>:<column>=<value>`, e.g. `direct_messages:receiver_id=<id>`.
Subscribers must treat every event as a hint only: delivery is best effort,
may repeat, and carries no ordering guarantee.
"""

import json
import logging
import time
from typing import AsyncIterator, Optional

import redis
import redis.asyncio as aioredis

from ..config import REDIS_URL
from ..errors import Transient

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15


def channel_name(table: str, column: str, value: str) -> str:
    return f"{table}:{column}={value}"


class ChangeFeed:
    def __init__(self, client: Optional[redis.Redis] = None, url: Optional[str] = REDIS_URL):
        self._client = client
        self.url = url

    @property
    def enabled(self) -> bool:
        return self._client is not None or bool(self.url)

    @property
    def client(self) -> Optional[redis.Redis]:
        if self._client is None and self.url:
            self._client = redis.from_url(
                self.url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30,
            )
        return self._client

    def publish(
        self, table: str, column: str, value: str, event: str, record_id: Optional[str] = None
    ) -> bool:
        """
        Announce a change. Never raises: the write it describes has already
        committed, and subscribers recover on their next fetch.
        """
        if not self.enabled:
            logger.debug(f"Change feed disabled, dropping {event} on {table}")
            return False

        channel = channel_name(table, column, value)
        payload = json.dumps(
            {"event": event, "table": table, "id": record_id, "at": time.time()}
        )
        try:
            self.client.publish(channel, payload)
            return True
        except redis.RedisError as e:
            logger.warning(f"⚠️ Failed to publish {event} on {channel}: {e}")
            return False

    async def listen(self, channel: str) -> AsyncIterator[Optional[str]]:
        """
        Yield raw event payloads for one channel. Yields None every
        KEEPALIVE_SECONDS of silence so streaming responses can send a ping.
        """
        if not self.url:
            raise Transient("Live updates are not available right now.")

        client = aioredis.from_url(self.url, decode_responses=True)
        pubsub = client.pubsub()
        try:
            await pubsub.subscribe(channel)
            logger.info(f"📡 Subscribed to {channel}")
            while True:
                message = await pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=KEEPALIVE_SECONDS
                )
                yield message["data"] if message else None
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
            await client.aclose()
            logger.info(f"📴 Unsubscribed from {channel}")


_feed: Optional[ChangeFeed] = None


def get_change_feed() -> ChangeFeed:
    global _feed
    if _feed is None:
        _feed = ChangeFeed()
    return _feed
