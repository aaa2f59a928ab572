"""Core application functionality."""

from serialport_bridge.core.config import Settings, setup_logging
from serialport_bridge.core.models import InvokeErrorPayload, ReadData, ReadOptions, SerialportOptions

__all__ = [
    "InvokeErrorPayload",
    "ReadData",
    "ReadOptions",
    "SerialportOptions",
    "Settings",
    "setup_logging",
]
