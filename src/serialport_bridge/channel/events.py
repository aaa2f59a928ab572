"""In-process event feed."""

import asyncio
import inspect
import itertools
import logging
from typing import Any

from serialport_bridge.channel.base import EventFeed, EventHandler, Subscription

logger = logging.getLogger(__name__)


class EventBus(EventFeed):
    """Publish/subscribe hub keyed by channel name.

    Handlers run in registration order on the publishing task. Coroutine
    handlers are awaited. A failing handler is logged and does not stop
    delivery to the others.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, dict[int, EventHandler]] = {}
        self._ids = itertools.count(1)
        self._stats = {
            "published": 0,
            "delivered": 0,
            "handler_errors": 0,
        }

    async def subscribe(self, channel: str, handler: EventHandler) -> Subscription:
        handler_id = next(self._ids)
        self._handlers.setdefault(channel, {})[handler_id] = handler
        logger.debug("Subscribed handler %d to %s", handler_id, channel)
        return Subscription(channel, lambda: self._unsubscribe(channel, handler_id))

    def _unsubscribe(self, channel: str, handler_id: int) -> None:
        handlers = self._handlers.get(channel)
        if handlers is None:
            return
        handlers.pop(handler_id, None)
        if not handlers:
            del self._handlers[channel]

    def subscriber_count(self, channel: str) -> int:
        return len(self._handlers.get(channel, {}))

    @property
    def stats(self) -> dict:
        return self._stats.copy()

    async def publish(self, channel: str, payload: Any) -> int:
        """Deliver ``payload`` to every handler on ``channel``.

        Returns:
            Number of handlers that received the payload.
        """
        self._stats["published"] += 1
        # Copy so handlers may (un)subscribe while being called.
        handlers = list(self._handlers.get(channel, {}).values())
        for handler in handlers:
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
                self._stats["delivered"] += 1
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._stats["handler_errors"] += 1
                logger.error("Event handler on %s failed: %s", channel, e)
        return len(handlers)
