"""Exception hierarchy for serial port sessions.

Locally detected failures carry a plain message. Failures returned by the
command channel carry the channel's ``code`` and ``message`` unchanged, so
callers can tell the two apart by checking for ``code``.
"""

from typing import Any


class SerialportError(Exception):
    """Base class for all session errors."""

    code: int | None = None


class ValidationError(SerialportError):
    """Raised locally before any remote call is made."""


class PayloadTypeError(ValidationError, TypeError):
    """Binary write payload is not a byte sequence."""


class NotOpenError(SerialportError):
    """I/O attempted on a session that is not open."""


class ConflictError(SerialportError):
    """Another state transition is already in progress on this session."""


class RemoteError(SerialportError):
    """Failure reported by the command channel."""

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    @classmethod
    def from_payload(cls, payload: Any) -> "RemoteError":
        """Build from a ``{code, message}`` mapping or a bare message."""
        if isinstance(payload, dict):
            return cls(int(payload.get("code", -1)), str(payload.get("message", "")))
        return cls(-1, str(payload))

    def to_payload(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}

    def __repr__(self) -> str:
        return f"RemoteError(code={self.code!r}, message={self.message!r})"


class ListenerError(SerialportError):
    """A listen callback failed while handling one delivery.

    Never raised to the caller of ``listen``; only logged.
    """

    def __init__(self, channel: str, cause: BaseException):
        super().__init__(f"Listener on {channel} failed: {cause}")
        self.channel = channel
        self.cause = cause
