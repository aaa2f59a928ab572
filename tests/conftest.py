"""Shared test fixtures."""

import asyncio
import time
from typing import Any

import pytest

from serialport_bridge import session as session_module
from serialport_bridge.channel.base import CommandChannel, EventFeed, EventHandler, Subscription
from serialport_bridge.channel.events import EventBus
from serialport_bridge.core.errors import RemoteError
from serialport_bridge.session import Serialport

DEFAULT_RESULTS: dict[str, Any] = {
    "available_ports": ["COM1", "COM3"],
}


class FakeCommandChannel(CommandChannel):
    """Records every command; results and failures are set per command."""

    def __init__(self, log: list | None = None) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.log = log if log is not None else []
        self.results: dict[str, Any] = dict(DEFAULT_RESULTS)
        self.failures: dict[str, RemoteError] = {}

    async def invoke(self, command: str, **args: Any) -> Any:
        self.calls.append((command, args))
        self.log.append(command)
        # Yield like a real round-trip so overlapping callers interleave.
        await asyncio.sleep(0)
        if command in self.failures:
            raise self.failures[command]
        if command == "write":
            return len(args["value"].encode())
        if command == "write_binary":
            return len(args["value"])
        return self.results.get(command)

    @property
    def commands(self) -> list[str]:
        return [name for name, _ in self.calls]


class FakeSerial:
    """Minimal stand-in for serial.Serial backed by an in-memory buffer."""

    def __init__(self) -> None:
        self.port = None
        self.baudrate = None
        self.bytesize = None
        self.parity = None
        self.stopbits = None
        self.xonxoff = None
        self.rtscts = None
        self.timeout = None
        self.is_open = False
        self.rx = bytearray()
        self.tx = bytearray()
        self.open_error: Exception | None = None

    def open(self) -> None:
        if self.open_error is not None:
            raise self.open_error
        self.is_open = True

    def close(self) -> None:
        self.is_open = False

    @property
    def in_waiting(self) -> int:
        return len(self.rx)

    def read(self, n: int) -> bytes:
        if not self.rx:
            time.sleep(0.005)
            return b""
        data = bytes(self.rx[:n])
        del self.rx[:n]
        return data

    def write(self, data: bytes) -> int:
        self.tx.extend(data)
        return len(data)


class RecordingFeed(EventFeed):
    """EventBus wrapper that logs subscription releases."""

    def __init__(self, log: list) -> None:
        self.bus = EventBus()
        self.log = log
        self.subscribed: list[str] = []

    async def subscribe(self, channel: str, handler: EventHandler) -> Subscription:
        inner = await self.bus.subscribe(channel, handler)
        self.subscribed.append(channel)

        def release() -> None:
            self.log.append("cancel_listen")
            inner.cancel()

        return Subscription(channel, release)

    async def publish(self, channel: str, payload: Any) -> int:
        return await self.bus.publish(channel, payload)


@pytest.fixture
def call_log() -> list:
    return []


@pytest.fixture
def channel(call_log) -> FakeCommandChannel:
    return FakeCommandChannel(call_log)


@pytest.fixture
def feed(call_log) -> RecordingFeed:
    return RecordingFeed(call_log)


@pytest.fixture
def make_port(channel, feed):
    """Factory for sessions wired to the fake channel and feed."""

    def _make(**options: Any) -> Serialport:
        options.setdefault("path", "COM3")
        options.setdefault("baud_rate", 9600)
        return Serialport(channel=channel, feed=feed, **options)

    return _make


@pytest.fixture(autouse=True)
def reset_default_backend():
    """Keep module-level default channel/feed from leaking between tests."""
    yield
    session_module.configure(None, None)


@pytest.fixture
def fake_serial() -> FakeSerial:
    return FakeSerial()


@pytest.fixture
def serial_factory():
    """serial.Serial replacement that keeps every handle it creates."""
    handles: list[FakeSerial] = []

    def factory() -> FakeSerial:
        handles.append(FakeSerial())
        return handles[-1]

    factory.handles = handles
    return factory
