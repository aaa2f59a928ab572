"""Serial port ownership and background reading using direct pyserial.

Blocking pyserial reads run in a thread pool via run_in_executor(); each
chunk read is published on the port's event channel.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from enum import IntEnum

import serial
from serial import SerialException
from serial.tools import list_ports

from serialport_bridge.channel.base import read_event_name
from serialport_bridge.channel.events import EventBus
from serialport_bridge.core.models import DEFAULT_CHUNK_SIZE, DEFAULT_TIMEOUT_MS, ReadData

logger = logging.getLogger(__name__)

DATA_BITS = {
    5: serial.FIVEBITS,
    6: serial.SIXBITS,
    7: serial.SEVENBITS,
    8: serial.EIGHTBITS,
}
PARITIES = {
    "Odd": serial.PARITY_ODD,
    "Even": serial.PARITY_EVEN,
}
STOP_BITS = {
    1: serial.STOPBITS_ONE,
    2: serial.STOPBITS_TWO,
}


class ErrorCode(IntEnum):
    """Codes attached to driver failures."""

    NOT_FOUND = 1
    ALREADY_OPEN = 2
    NOT_OPEN = 3
    OPEN_FAILED = 4
    IO_ERROR = 5
    UNKNOWN_COMMAND = 6
    INVALID_ARGUMENT = 7


class PortError(Exception):
    """Driver-side failure for one command."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class OpenPort:
    """An open serial handle and its optional background reader."""

    def __init__(self, path: str, handle: serial.Serial):
        self.path = path
        self.handle = handle
        self.reader: asyncio.Task | None = None
        self.stats = {
            "chunks_read": 0,
            "bytes_read": 0,
            "bytes_written": 0,
        }

    @property
    def reading(self) -> bool:
        return self.reader is not None and not self.reader.done()


class PortRegistry:
    """Owns every port opened through the driver, keyed by path."""

    def __init__(self, bus: EventBus, serial_factory=None, max_workers: int = 4):
        """
        Initialize an empty registry.

        Args:
            bus: Event bus that receives data read from ports.
            serial_factory: Callable returning an unopened ``serial.Serial``
                (default: ``serial.Serial``).
            max_workers: Threads available for blocking reads.
        """
        self._bus = bus
        self._serial_factory = serial_factory or serial.Serial
        self._ports: dict[str, OpenPort] = {}
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="serial")

    @property
    def open_ports(self) -> list[str]:
        return sorted(self._ports)

    @property
    def reading_ports(self) -> list[str]:
        return sorted(path for path, port in self._ports.items() if port.reading)

    def get(self, path: str) -> OpenPort:
        port = self._ports.get(path)
        if port is None:
            raise PortError(ErrorCode.NOT_FOUND, "Serial port not found")
        return port

    # -- enumeration ---------------------------------------------------------

    @staticmethod
    def available_ports() -> list[str]:
        """Names of the serial ports visible to the host, sorted."""
        try:
            infos = list_ports.comports()
        except (OSError, SerialException) as e:
            logger.warning("Port enumeration failed: %s", e)
            return []
        names = sorted(info.device for info in infos)
        logger.debug("Serial ports: %s", names)
        return names

    # -- open/close ----------------------------------------------------------

    def open(
        self,
        path: str,
        baud_rate: int,
        data_bits: int | None = None,
        flow_control: str | None = None,
        parity: str | None = None,
        stop_bits: int | None = None,
        timeout: int | None = None,
    ) -> None:
        """Open ``path``. Unknown option values fall back to 8N2, no flow control."""
        if path in self._ports:
            raise PortError(ErrorCode.ALREADY_OPEN, f"Serial port {path} is already open!")

        handle = self._serial_factory()
        try:
            handle.port = path
            handle.baudrate = baud_rate
            handle.bytesize = DATA_BITS.get(data_bits, serial.EIGHTBITS)
            handle.parity = PARITIES.get(parity, serial.PARITY_NONE)
            handle.stopbits = STOP_BITS.get(stop_bits, serial.STOPBITS_TWO)
            handle.xonxoff = flow_control == "Software"
            handle.rtscts = flow_control == "Hardware"
            handle.timeout = (timeout or DEFAULT_TIMEOUT_MS) / 1000
        except (ValueError, TypeError) as e:
            raise PortError(ErrorCode.INVALID_ARGUMENT, f"Invalid configuration for {path}: {e}") from e

        try:
            handle.open()
        except (OSError, SerialException, ValueError) as e:
            raise PortError(ErrorCode.OPEN_FAILED, f"Error opening {path}: {e}") from e

        self._ports[path] = OpenPort(path, handle)
        logger.info("Opened %s at %d baud", path, baud_rate)

    async def close(self, path: str) -> None:
        port = self._ports.pop(path, None)
        if port is None:
            raise PortError(ErrorCode.NOT_OPEN, f"Serial port {path} is not opened!")
        await self._release(port)

    async def force_close(self, path: str) -> None:
        """Close ``path`` if open; unknown paths are ignored."""
        port = self._ports.pop(path, None)
        if port is None:
            return
        logger.info("Force closing %s", path)
        await self._release(port)

    async def close_all(self) -> None:
        ports = list(self._ports.values())
        self._ports.clear()
        for port in ports:
            await self._release(port)
        logger.info("Closed %d serial port(s)", len(ports))

    async def _release(self, port: OpenPort) -> None:
        await self._stop_reader(port)
        try:
            port.handle.close()
        except (OSError, SerialException) as e:
            logger.error("Error closing %s: %s", port.path, e)
        logger.info("Closed %s", port.path)

    async def shutdown(self) -> None:
        await self.close_all()
        self._executor.shutdown(wait=False, cancel_futures=True)

    # -- reading -------------------------------------------------------------

    def read(self, path: str, timeout: int | None = None, size: int | None = None) -> None:
        """Start publishing data from ``path`` until the read is cancelled.

        A second request while a reader is running is ignored.
        """
        port = self.get(path)
        if port.reading:
            logger.debug("Serial port %s is already being read", path)
            return

        logger.info("Starting to read %s", path)
        port.reader = asyncio.create_task(
            self._read_loop(port, timeout or DEFAULT_TIMEOUT_MS, size or DEFAULT_CHUNK_SIZE),
            name=f"serial-read-{path}",
        )

    async def cancel_read(self, path: str) -> None:
        port = self.get(path)
        await self._stop_reader(port)
        logger.info("Cancelled read on %s", path)

    async def _stop_reader(self, port: OpenPort) -> None:
        task, port.reader = port.reader, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _blocking_read(self, handle: serial.Serial, size: int) -> bytes:
        """Blocking read for use with run_in_executor.

        Waits up to the port timeout for the first byte, then takes whatever
        else is already buffered, capped at ``size``.
        """
        first = handle.read(1)
        if not first:
            return b""
        available = min(handle.in_waiting, size - 1)
        if available > 0:
            return first + handle.read(available)
        return first

    async def _read_loop(self, port: OpenPort, timeout_ms: int, size: int) -> None:
        event = read_event_name(port.path)
        loop = asyncio.get_running_loop()
        while port.handle.is_open:
            try:
                data = await loop.run_in_executor(self._executor, self._blocking_read, port.handle, size)
            except (OSError, SerialException) as e:
                logger.debug("Read error on %s: %s", port.path, e)
                data = b""

            if data:
                port.stats["chunks_read"] += 1
                port.stats["bytes_read"] += len(data)
                logger.debug("Serial port %s read data: %d", port.path, len(data))
                await self._bus.publish(event, ReadData(size=len(data), data=list(data)).model_dump())

            await asyncio.sleep(timeout_ms / 1000)
        logger.info("Serial port %s closed, reader stopped", port.path)

    # -- writing -------------------------------------------------------------

    def write(self, path: str, value: str) -> int:
        if not isinstance(value, str):
            raise PortError(ErrorCode.INVALID_ARGUMENT, f"Expected text payload, got {type(value).__name__}")
        return self._write(path, value.encode())

    def write_binary(self, path: str, value: list[int]) -> int:
        try:
            data = bytes(value)
        except (TypeError, ValueError) as e:
            raise PortError(ErrorCode.INVALID_ARGUMENT, f"Invalid binary payload: {e}") from e
        return self._write(path, data)

    def _write(self, path: str, data: bytes) -> int:
        port = self.get(path)
        try:
            written = port.handle.write(data)
        except (OSError, SerialException) as e:
            raise PortError(ErrorCode.IO_ERROR, f"Error writing to serial port {path}: {e}") from e
        written = len(data) if written is None else written
        port.stats["bytes_written"] += written
        return written
