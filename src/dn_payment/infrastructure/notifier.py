"""Live-dashboard notifier: Redis pub/sub, fire-and-forget.

Runs after the ledger transaction has committed. A Redis outage must never
turn a recorded donation into a failed request, so `notify` schedules the
publish in the background and returns immediately. Each publish is bounded
by a timeout; errors and timeouts are logged and dropped.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

import redis.asyncio as aioredis

from config.settings import settings
from src.dn_common.datetime_utils import utc_now
from src.dn_common.redis_client import get_redis
from src.dn_common.satang import satang_to_baht

logger = logging.getLogger(__name__)


class RedisNotifier:
    def __init__(
        self,
        redis_getter: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
        channel: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._redis_getter = redis_getter
        self._channel = channel or settings.NOTIFY_CHANNEL
        self._timeout = timeout if timeout is not None else settings.REDIS_TIMEOUT_SECONDS
        # Strong references so the event loop does not drop in-flight publishes.
        self._in_flight: set[asyncio.Task[None]] = set()

    def notify(
        self, event_type: str, amount: int, at: datetime | None = None
    ) -> asyncio.Task[None]:
        """Schedule a publish without waiting for Redis."""
        task = asyncio.create_task(self.publish(event_type, amount, at))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def publish(self, event_type: str, amount: int, at: datetime | None = None) -> None:
        """Broadcast {type, amount, timestamp}; amount is baht as a decimal string."""
        message = json.dumps(
            {
                "type": event_type,
                "amount": satang_to_baht(amount),
                "timestamp": (at or utc_now()).isoformat(),
            }
        )
        try:
            await asyncio.wait_for(self._send(message), timeout=self._timeout)
        except TimeoutError:
            logger.warning("Donation notification timed out after %ss: %s", self._timeout, message)
        except Exception:  # noqa: BLE001
            logger.warning("Donation notification not published: %s", message, exc_info=True)

    async def _send(self, message: str) -> None:
        redis = await self._redis_getter()
        await redis.publish(self._channel, message)
