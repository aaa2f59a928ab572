"""Command channel that runs commands against an in-process PortRegistry."""

import inspect
import logging
from typing import Any

from serialport_bridge.channel.base import CommandChannel
from serialport_bridge.core.errors import RemoteError
from serialport_bridge.driver.registry import ErrorCode, PortError, PortRegistry

logger = logging.getLogger(__name__)


class LocalCommandChannel(CommandChannel):
    """Dispatches command names to the registry.

    Arguments use the wire names (``baudRate``, ``dataBits``...). Every
    driver failure is raised as ``RemoteError`` with the driver's code.
    """

    def __init__(self, registry: PortRegistry):
        self._registry = registry
        self._commands = {
            "available_ports": self._available_ports,
            "force_close": registry.force_close,
            "close_all": registry.close_all,
            "open": self._open,
            "close": registry.close,
            "read": registry.read,
            "cancel_read": registry.cancel_read,
            "write": registry.write,
            "write_binary": registry.write_binary,
        }

    @property
    def commands(self) -> list[str]:
        return sorted(self._commands)

    async def invoke(self, command: str, **args: Any) -> Any:
        handler = self._commands.get(command)
        if handler is None:
            raise RemoteError(ErrorCode.UNKNOWN_COMMAND, f"Unknown command: {command}")

        try:
            bound = inspect.signature(handler).bind(**args)
        except TypeError as e:
            raise RemoteError(ErrorCode.INVALID_ARGUMENT, f"Invalid arguments for {command}: {e}") from e

        logger.debug("Invoking %s %s", command, args)
        try:
            result = handler(*bound.args, **bound.kwargs)
            if inspect.isawaitable(result):
                result = await result
        except PortError as e:
            logger.warning("Command %s failed: %s", command, e.message)
            raise RemoteError(e.code, e.message) from e
        return result

    def _available_ports(self) -> list[str]:
        return self._registry.available_ports()

    def _open(
        self,
        path: str,
        baudRate: int,
        dataBits: int | None = None,
        flowControl: str | None = None,
        parity: str | None = None,
        stopBits: int | None = None,
        timeout: int | None = None,
    ) -> None:
        self._registry.open(
            path,
            baudRate,
            data_bits=dataBits,
            flow_control=flowControl,
            parity=parity,
            stop_bits=stopBits,
            timeout=timeout,
        )
