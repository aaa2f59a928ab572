"""Unit tests for data models."""

import pytest
from pydantic import ValidationError

from serialport_bridge.core.models import (
    ActionResponse,
    HealthResponse,
    InvokeErrorPayload,
    PortsResponse,
    ReadData,
    ReadOptions,
    SerialportOptions,
)


class TestSerialportOptions:
    """Tests for SerialportOptions model."""

    def test_defaults(self):
        """Only path and baud rate -> effective configuration fully defaulted."""
        options = SerialportOptions(path="COM3", baudRate=9600)

        assert options.model_dump(by_alias=True) == {
            "path": "COM3",
            "baudRate": 9600,
            "encoding": "utf-8",
            "dataBits": 8,
            "flowControl": None,
            "parity": None,
            "stopBits": 2,
            "timeout": 200,
            "size": 1024,
        }

    def test_empty(self):
        """No arguments at all is still a valid (unopenable) configuration."""
        options = SerialportOptions()

        assert options.path == ""
        assert options.baud_rate is None

    def test_field_names_and_aliases(self):
        by_name = SerialportOptions(path="COM1", baud_rate=19200, data_bits=7, stop_bits=1)
        by_alias = SerialportOptions(path="COM1", baudRate=19200, dataBits=7, stopBits=1)

        assert by_name == by_alias

    def test_falsy_values_fall_back_to_defaults(self):
        options = SerialportOptions(
            path=None, baudRate=0, encoding="", dataBits=0, stopBits=0, timeout=0, size=0, parity=""
        )

        assert options.path == ""
        assert options.baud_rate is None
        assert options.encoding == "utf-8"
        assert options.data_bits == 8
        assert options.stop_bits == 2
        assert options.timeout == 200
        assert options.size == 1024
        assert options.parity is None

    @pytest.mark.parametrize("data_bits", [5, 6, 7, 8])
    def test_valid_data_bits(self, data_bits):
        assert SerialportOptions(dataBits=data_bits).data_bits == data_bits

    def test_invalid_data_bits(self):
        with pytest.raises(ValidationError):
            SerialportOptions(dataBits=9)

    def test_invalid_parity(self):
        with pytest.raises(ValidationError):
            SerialportOptions(parity="Mark")

    def test_invalid_flow_control(self):
        with pytest.raises(ValidationError):
            SerialportOptions(flowControl="XonXoff")

    def test_invalid_stop_bits(self):
        with pytest.raises(ValidationError):
            SerialportOptions(stopBits=3)

    def test_negative_timeout_rejected(self):
        with pytest.raises(ValidationError):
            SerialportOptions(timeout=-5)


class TestReadData:
    """Tests for ReadData payload model."""

    def test_from_list(self):
        chunk = ReadData(size=5, data=[104, 101, 108, 108, 111])

        assert chunk.to_bytes() == b"hello"

    def test_from_bytes(self):
        chunk = ReadData.model_validate({"size": 2, "data": b"\x01\x02"})

        assert chunk.data == [1, 2]

    def test_missing_size_rejected(self):
        with pytest.raises(ValidationError):
            ReadData.model_validate({"data": [1]})

    def test_byte_out_of_range(self):
        chunk = ReadData(size=1, data=[256])

        with pytest.raises(ValueError):
            chunk.to_bytes()


class TestSmallModels:
    """Tests for request/response helper models."""

    def test_read_options_default_none(self):
        options = ReadOptions()

        assert options.timeout is None
        assert options.size is None

    def test_read_options_zero_is_unset(self):
        options = ReadOptions(timeout=0, size=0)

        assert options.timeout is None
        assert options.size is None

    def test_read_options_rejects_negative(self):
        with pytest.raises(ValidationError):
            ReadOptions(size=-1)

    def test_invoke_error_payload(self):
        payload = InvokeErrorPayload(code=3, message="Serial port COM3 is not opened!")

        assert payload.model_dump() == {"code": 3, "message": "Serial port COM3 is not opened!"}

    def test_response_models(self):
        assert PortsResponse().ports == []
        assert ActionResponse(success=True).path is None
        assert HealthResponse(status="healthy", open_ports=1, reading_ports=0).open_ports == 1
