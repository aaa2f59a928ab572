"""Unit tests for the serialport-monitor command line tool."""

import argparse
import os
from unittest.mock import patch

import pytest

from serialport_bridge.core.config import Settings
from serialport_bridge.monitor import build_parser, main, print_chunk, run


def parse(*argv: str) -> argparse.Namespace:
    with patch.dict(os.environ, {}, clear=True):
        return build_parser(Settings()).parse_args(list(argv))


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        args = parse("COM3")

        assert args.path == "COM3"
        assert args.baud == 9600
        assert args.data_bits == 8
        assert args.stop_bits == 2
        assert args.parity is None
        assert args.flow_control is None
        assert args.timeout == 200
        assert args.size == 1024
        assert args.encoding == "utf-8"

    def test_invalid_parity_rejected(self):
        with pytest.raises(SystemExit):
            parse("COM3", "--parity", "Mark")

    def test_path_required_without_list(self):
        with pytest.raises(SystemExit):
            main([])


class TestPrintChunk:
    def test_text(self, capsys):
        print_chunk("hello")

        assert capsys.readouterr().out == "hello"

    def test_bytes_as_hex(self, capsys):
        print_chunk(b"\x01\xff")

        assert capsys.readouterr().out == "01 ff\n"


class TestRun:
    """Tests for the monitor loop against a fake driver."""

    @pytest.mark.asyncio
    async def test_list_ports(self, capsys):
        with patch("serialport_bridge.driver.registry.PortRegistry.available_ports", return_value=["COM1", "COM3"]):
            code = await run(parse("--list"))

        assert code == 0
        assert capsys.readouterr().out == "COM1\nCOM3\n"

    @pytest.mark.asyncio
    async def test_open_write_and_close(self, serial_factory):
        with patch("serialport_bridge.driver.registry.serial.Serial", serial_factory):
            code = await run(parse("COM3", "--write", "AT", "--duration", "0.01"))

        assert code == 0
        handle = serial_factory.handles[0]
        assert bytes(handle.tx) == b"AT"
        assert handle.is_open is False

    @pytest.mark.asyncio
    async def test_open_failure_reports_error(self, serial_factory, capsys):
        def failing_factory():
            handle = serial_factory()
            handle.open_error = OSError("No such file or directory")
            return handle

        with patch("serialport_bridge.driver.registry.serial.Serial", failing_factory):
            code = await run(parse("/dev/missing", "--duration", "0.01"))

        assert code == 1
        assert "Error opening /dev/missing" in capsys.readouterr().err
