"""Command channel and event feed boundaries."""

from serialport_bridge.channel.base import (
    READ_EVENT_PREFIX,
    CommandChannel,
    EventFeed,
    EventHandler,
    Subscription,
    read_event_name,
)
from serialport_bridge.channel.events import EventBus

__all__ = [
    "READ_EVENT_PREFIX",
    "CommandChannel",
    "EventBus",
    "EventFeed",
    "EventHandler",
    "Subscription",
    "read_event_name",
]
