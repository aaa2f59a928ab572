"""Client-side session handle for serial ports owned by a driver component."""

__version__ = "0.3.0"

from serialport_bridge.core.errors import (  # noqa: E402
    ConflictError,
    ListenerError,
    NotOpenError,
    PayloadTypeError,
    RemoteError,
    SerialportError,
    ValidationError,
)
from serialport_bridge.session import Serialport  # noqa: E402

__all__ = [
    "ConflictError",
    "ListenerError",
    "NotOpenError",
    "PayloadTypeError",
    "RemoteError",
    "Serialport",
    "SerialportError",
    "ValidationError",
    "__version__",
]
