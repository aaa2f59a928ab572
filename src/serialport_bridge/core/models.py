"""Data models for serial port sessions."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DataBits = Literal[5, 6, 7, 8]
FlowControl = Literal["Software", "Hardware"] | None
Parity = Literal["Odd", "Even"] | None
StopBits = Literal[1, 2]

DEFAULT_ENCODING = "utf-8"
DEFAULT_DATA_BITS = 8
DEFAULT_STOP_BITS = 2
DEFAULT_TIMEOUT_MS = 200
DEFAULT_CHUNK_SIZE = 1024


class SerialportOptions(BaseModel):
    """Configuration accepted when constructing a session.

    ``path`` and ``baud_rate`` may be left unset here; they are checked
    when the session is opened. Falsy values for the optional fields fall
    back to their defaults.
    """

    path: str = Field("", description="Device path, e.g. /dev/ttyUSB0 or COM3")
    baud_rate: int | None = Field(None, alias="baudRate", description="Baud rate")
    encoding: str = Field(DEFAULT_ENCODING, description="Text encoding for received data")
    data_bits: DataBits = Field(DEFAULT_DATA_BITS, alias="dataBits")
    flow_control: FlowControl = Field(None, alias="flowControl")
    parity: Parity = None
    stop_bits: StopBits = Field(DEFAULT_STOP_BITS, alias="stopBits")
    timeout: int = Field(DEFAULT_TIMEOUT_MS, gt=0, description="Default read timeout in milliseconds")
    size: int = Field(DEFAULT_CHUNK_SIZE, gt=0, description="Default read chunk size in bytes")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "path": "/dev/ttyUSB0",
                "baudRate": 9600,
                "dataBits": 8,
                "flowControl": None,
                "parity": None,
                "stopBits": 2,
                "timeout": 200,
                "size": 1024,
            }
        },
    )

    @field_validator("path", mode="before")
    @classmethod
    def default_path(cls, v):
        return v or ""

    @field_validator("baud_rate", mode="before")
    @classmethod
    def default_baud_rate(cls, v):
        return v or None

    @field_validator("encoding", mode="before")
    @classmethod
    def default_encoding(cls, v):
        return v or DEFAULT_ENCODING

    @field_validator("data_bits", mode="before")
    @classmethod
    def default_data_bits(cls, v):
        return v or DEFAULT_DATA_BITS

    @field_validator("flow_control", "parity", mode="before")
    @classmethod
    def default_none(cls, v):
        return v or None

    @field_validator("stop_bits", mode="before")
    @classmethod
    def default_stop_bits(cls, v):
        return v or DEFAULT_STOP_BITS

    @field_validator("timeout", mode="before")
    @classmethod
    def default_timeout(cls, v):
        return v or DEFAULT_TIMEOUT_MS

    @field_validator("size", mode="before")
    @classmethod
    def default_size(cls, v):
        return v or DEFAULT_CHUNK_SIZE


class ReadOptions(BaseModel):
    """Per-call overrides for a read request.

    Unset or zero values defer to the session defaults.
    """

    timeout: int | None = Field(None, gt=0, description="Read timeout in milliseconds")
    size: int | None = Field(None, gt=0, description="Bytes requested per read")

    @field_validator("timeout", "size", mode="before")
    @classmethod
    def unset_when_falsy(cls, v):
        return v or None


class ReadData(BaseModel):
    """Payload delivered on a port's read event channel."""

    size: int = Field(..., ge=0, description="Number of bytes in data")
    data: list[int] = Field(default_factory=list, description="Received bytes")

    @field_validator("data", mode="before")
    @classmethod
    def coerce_bytes(cls, v):
        if isinstance(v, (bytes, bytearray, memoryview)):
            return list(bytes(v))
        return v

    def to_bytes(self) -> bytes:
        return bytes(self.data)


class InvokeErrorPayload(BaseModel):
    """Structured failure returned by the command channel."""

    code: int = Field(..., description="Driver error code")
    message: str = Field(..., description="Driver error message")


# ============================================================================
# API Response Models
# ============================================================================


class PortsResponse(BaseModel):
    """Response model for GET /api/ports and GET /api/ports/open."""

    ports: list[str] = Field(default_factory=list, description="Device paths")


class ActionResponse(BaseModel):
    """Response model for close endpoints."""

    success: bool = Field(..., description="Whether the driver acknowledged the command")
    path: str | None = Field(None, description="Device path the command targeted")


class HealthResponse(BaseModel):
    """Response model for GET /health."""

    status: str = Field(..., description="Service status")
    open_ports: int = Field(..., ge=0, description="Ports currently held by the driver")
    reading_ports: int = Field(..., ge=0, description="Ports with an active background reader")
