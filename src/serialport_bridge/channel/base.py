"""Boundary contracts for the driver: request/response commands and push events."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

# Driver and client derive a port's event channel from its path alone.
READ_EVENT_PREFIX = "plugin-serialport-read-"

EventHandler = Callable[[Any], Any]


def read_event_name(path: str) -> str:
    """Name of the event channel carrying data read from ``path``."""
    return READ_EVENT_PREFIX + path


class CommandChannel(ABC):
    """Request/response boundary to the serial port driver.

    Implementations raise ``RemoteError`` for any failure reported by the
    driver, carrying the driver's code and message unchanged.
    """

    @abstractmethod
    async def invoke(self, command: str, **args: Any) -> Any:
        """Run ``command`` with keyword arguments and return its result."""


class Subscription:
    """Handle for one registration on an event feed.

    ``cancel()`` is idempotent; the release callback runs at most once.
    """

    def __init__(self, channel: str, release: Callable[[], None]):
        self.channel = channel
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def cancel(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()
            logger.debug("Subscription to %s cancelled", self.channel)

    def __repr__(self) -> str:
        return f"Subscription(channel={self.channel!r}, active={self.active})"


class EventFeed(ABC):
    """Push boundary delivering payloads per named channel.

    Handlers may be coroutine functions; the feed awaits whatever they return.
    """

    @abstractmethod
    async def subscribe(self, channel: str, handler: EventHandler) -> Subscription:
        """Register ``handler`` for every payload published on ``channel``."""
