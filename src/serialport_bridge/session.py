"""Client-side session handle for one serial port owned by the driver.

The session never touches the hardware. Every operation is a command sent
over a ``CommandChannel``; data read from the port arrives separately on an
``EventFeed`` channel derived from the port path. The session keeps the
open/closed state, validates what it can locally before any remote call,
and owns at most one event subscription at a time.
"""

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

import pydantic

from serialport_bridge.channel.base import CommandChannel, EventFeed, Subscription, read_event_name
from serialport_bridge.core.errors import (
    ConflictError,
    ListenerError,
    NotOpenError,
    PayloadTypeError,
    ValidationError,
)
from serialport_bridge.core.models import ReadData, ReadOptions, SerialportOptions

logger = logging.getLogger(__name__)

_default_channel: CommandChannel | None = None
_default_feed: EventFeed | None = None


def configure(channel: CommandChannel | None, feed: EventFeed | None) -> None:
    """Set the channel and feed used by sessions that are not given their own."""
    global _default_channel, _default_feed
    _default_channel = channel
    _default_feed = feed


def _resolve_channel(channel: CommandChannel | None) -> CommandChannel:
    if channel is None:
        channel = _default_channel
    if channel is None:
        raise RuntimeError("No command channel configured; pass one or call configure()")
    return channel


class Serialport:
    """Session bound to one device path.

    Construction is purely local and never fails for a missing path or baud
    rate; both are checked by ``open()``. ``path`` and ``baud_rate`` can be
    changed at any time: while open, the session closes, applies the change
    and reopens.

    Concurrent calls on the same session are not serialised. With
    ``exclusive_transitions=True`` an open/close/reconfigure that overlaps
    another one raises ``ConflictError`` instead.
    """

    def __init__(
        self,
        options: SerialportOptions | dict[str, Any] | None = None,
        *,
        channel: CommandChannel | None = None,
        feed: EventFeed | None = None,
        exclusive_transitions: bool = False,
        **kwargs: Any,
    ):
        """
        Initialize a closed session.

        Args:
            options: Port configuration, as a model or a mapping using either
                field names (``baud_rate``) or wire names (``baudRate``).
            channel: Command channel; defaults to the one set by ``configure()``.
            feed: Event feed; defaults to the one set by ``configure()``.
            exclusive_transitions: Reject overlapping state transitions.
            **kwargs: Configuration fields, merged over ``options``.
        """
        if isinstance(options, SerialportOptions):
            options = options.model_dump()
        merged = {**(options or {}), **kwargs}
        self._options = _validate(SerialportOptions, merged)

        self._channel = channel
        self._feed = feed
        self._exclusive = exclusive_transitions
        self._transitioning: str | None = None

        self._is_open = False
        self._subscription: Subscription | None = None

    # -- configuration -------------------------------------------------------

    @property
    def path(self) -> str:
        return self._options.path

    @property
    def baud_rate(self) -> int | None:
        return self._options.baud_rate

    @property
    def data_bits(self) -> int:
        return self._options.data_bits

    @property
    def flow_control(self) -> str | None:
        return self._options.flow_control

    @property
    def parity(self) -> str | None:
        return self._options.parity

    @property
    def stop_bits(self) -> int:
        return self._options.stop_bits

    @property
    def timeout(self) -> int:
        """Default read timeout in milliseconds."""
        return self._options.timeout

    @property
    def size(self) -> int:
        """Default number of bytes requested per read."""
        return self._options.size

    @property
    def encoding(self) -> str:
        return self._options.encoding

    @property
    def options(self) -> SerialportOptions:
        """Copy of the effective configuration."""
        return self._options.model_copy()

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def listening(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def channel(self) -> CommandChannel:
        return _resolve_channel(self._channel)

    @property
    def feed(self) -> EventFeed:
        feed = self._feed if self._feed is not None else _default_feed
        if feed is None:
            raise RuntimeError("No event feed configured; pass one or call configure()")
        return feed

    def __repr__(self) -> str:
        state = "open" if self._is_open else "closed"
        return f"Serialport(path={self.path!r}, baud_rate={self.baud_rate!r}, {state})"

    # -- driver-wide operations ----------------------------------------------

    @staticmethod
    async def available_ports(channel: CommandChannel | None = None) -> list[str]:
        """List the device paths the driver can see."""
        return await _resolve_channel(channel).invoke("available_ports")

    @staticmethod
    async def force_close(path: str, channel: CommandChannel | None = None) -> None:
        """Release ``path`` in the driver, whoever opened it."""
        logger.info("Force closing %s", path)
        await _resolve_channel(channel).invoke("force_close", path=path)

    @staticmethod
    async def close_all(channel: CommandChannel | None = None) -> None:
        """Release every port the driver holds open."""
        logger.info("Closing all serial ports")
        await _resolve_channel(channel).invoke("close_all")

    # -- state transitions ---------------------------------------------------

    @asynccontextmanager
    async def _transition(self, name: str) -> AsyncIterator[None]:
        # Claimed before the first await, so overlapping callers see it.
        if not self._exclusive:
            yield
            return
        if self._transitioning is not None:
            raise ConflictError(f"Cannot {name} {self.path}: {self._transitioning} already in progress")
        self._transitioning = name
        try:
            yield
        finally:
            self._transitioning = None

    async def open(self) -> None:
        """Open the port with the current configuration.

        Raises:
            ValidationError: If path or baud rate is not set, or the baud rate
                is not positive. No command is sent.
            RemoteError: If the driver refuses; the session stays closed.
        """
        async with self._transition("open"):
            await self._open()

    async def _open(self) -> None:
        if not self.path:
            raise ValidationError("Path cannot be empty!")
        if not self.baud_rate:
            raise ValidationError("Baudrate cannot be empty!")
        if self.baud_rate <= 0:
            raise ValidationError(f"Baudrate must be a positive integer, got {self.baud_rate}")
        if self._is_open:
            return

        logger.info("Opening %s at %d baud", self.path, self.baud_rate)
        await self.channel.invoke(
            "open",
            path=self.path,
            baudRate=self.baud_rate,
            dataBits=self.data_bits,
            flowControl=self.flow_control,
            parity=self.parity,
            stopBits=self.stop_bits,
            timeout=self.timeout,
        )
        self._is_open = True

    async def close(self) -> None:
        """Close the port. No-op when already closed.

        Cancels any running read first, then closes the port, then drops the
        event subscription. On failure the session is left as it was.
        """
        async with self._transition("close"):
            await self._close()

    async def _close(self) -> None:
        if not self._is_open:
            return

        logger.info("Closing %s", self.path)
        await self.cancel_read()
        await self.channel.invoke("close", path=self.path)
        await self.cancel_listen()
        self._is_open = False

    async def change(self, path: str | None = None, baud_rate: int | None = None) -> None:
        """Change path and/or baud rate, reopening if the port was open.

        A failed close or reopen propagates; the session may then be closed.
        """
        async with self._transition("change"):
            await self._reconfigure(path=path, baud_rate=baud_rate)

    async def set_path(self, value: str) -> None:
        async with self._transition("set path"):
            await self._reconfigure(path=value)

    async def set_baud_rate(self, value: int) -> None:
        async with self._transition("set baud rate"):
            await self._reconfigure(baud_rate=value)

    async def _reconfigure(self, path: str | None = None, baud_rate: int | None = None) -> None:
        was_open = self._is_open
        if was_open:
            await self._close()

        updates: dict[str, Any] = {}
        if path:
            updates["path"] = path
        if baud_rate:
            updates["baud_rate"] = baud_rate
        if updates:
            self._options = self._options.model_copy(update=updates)
            logger.info("Reconfigured port: %s", updates)

        if was_open:
            await self._open()

    # -- reading -------------------------------------------------------------

    async def read(
        self,
        options: ReadOptions | None = None,
        *,
        timeout: int | None = None,
        size: int | None = None,
    ) -> None:
        """Ask the driver to start reading.

        Data is not returned here; it is published on the port's event
        channel, see ``listen()``.

        Args:
            options: Per-call overrides; takes precedence over the keywords.
            timeout: Milliseconds per read; defaults to the session timeout.
            size: Bytes per read; defaults to the session chunk size.
        """
        if options is None:
            options = _validate(ReadOptions, {"timeout": timeout, "size": size})
        timeout = options.timeout or self.timeout
        size = options.size or self.size
        logger.debug("Requesting read on %s (timeout=%dms, size=%d)", self.path, timeout, size)
        await self.channel.invoke("read", path=self.path, timeout=timeout, size=size)

    async def cancel_read(self) -> None:
        await self.channel.invoke("cancel_read", path=self.path)

    async def listen(self, callback: Callable[[Any], Any], decode: bool = True) -> None:
        """Deliver data read from the port to ``callback``.

        Replaces any previous listener. With ``decode`` the callback gets
        text decoded with the session encoding, otherwise raw ``bytes``.
        Failures inside the callback are logged and do not end the listener.
        """
        await self.cancel_listen()
        channel_name = read_event_name(self.path)

        async def deliver(payload: Any) -> None:
            try:
                chunk = payload if isinstance(payload, ReadData) else ReadData.model_validate(payload)
                raw = chunk.to_bytes()
                result = callback(raw.decode(self.encoding, errors="replace") if decode else raw)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("%s", ListenerError(channel_name, e), exc_info=True)

        self._subscription = await self.feed.subscribe(channel_name, deliver)
        logger.debug("Listening on %s", channel_name)

    async def cancel_listen(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()

    # -- writing -------------------------------------------------------------

    async def write(self, value: str) -> int:
        """Write text to the port.

        Returns:
            Number of bytes the driver accepted.

        Raises:
            NotOpenError: If the session is closed. No command is sent.
        """
        if not self._is_open:
            raise NotOpenError(f"Serial port {self.path} is not opened!")
        written = await self.channel.invoke("write", path=self.path, value=value)
        logger.debug("Wrote %s bytes to %s", written, self.path)
        return written

    async def write_binary(self, value: bytes | bytearray | memoryview | list[int] | tuple[int, ...]) -> int:
        """Write raw bytes to the port.

        Accepts a bytes-like object or a list/tuple of ints in 0..255.

        Raises:
            NotOpenError: If the session is closed.
            PayloadTypeError: If ``value`` is not a byte sequence.
        """
        if not self._is_open:
            raise NotOpenError(f"Serial port {self.path} is not open!")
        data = _coerce_bytes(value)
        written = await self.channel.invoke("write_binary", path=self.path, value=list(data))
        logger.debug("Wrote %s bytes to %s", written, self.path)
        return written

    # -- context manager -----------------------------------------------------

    async def __aenter__(self) -> "Serialport":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def _validate(model: type[pydantic.BaseModel], data: dict[str, Any]) -> Any:
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid {model.__name__}: {e}") from e


def _coerce_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, (list, tuple)):
        try:
            return bytes(value)
        except (TypeError, ValueError) as e:
            raise PayloadTypeError(f"Argument type error! Expected a byte sequence: {e}") from None
    raise PayloadTypeError(
        f"Argument type error! Expected bytes, bytearray or list of ints, got {type(value).__name__}"
    )
