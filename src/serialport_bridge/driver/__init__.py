"""In-process serial port driver exposing the command channel and event feed."""

from typing import NamedTuple

from serialport_bridge.channel.events import EventBus
from serialport_bridge.driver.channel import LocalCommandChannel
from serialport_bridge.driver.registry import ErrorCode, PortError, PortRegistry


class LocalBackend(NamedTuple):
    channel: LocalCommandChannel
    feed: EventBus
    registry: PortRegistry


def create_local_backend(**registry_kwargs) -> LocalBackend:
    """Wire a registry, its event bus and a command channel together."""
    bus = EventBus()
    registry = PortRegistry(bus, **registry_kwargs)
    return LocalBackend(LocalCommandChannel(registry), bus, registry)


__all__ = [
    "ErrorCode",
    "LocalBackend",
    "LocalCommandChannel",
    "PortError",
    "PortRegistry",
    "create_local_backend",
]
