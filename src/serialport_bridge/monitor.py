#!/usr/bin/env python3
"""Open a serial port through a session and print whatever it receives.

Examples:
    serialport-monitor --list
    serialport-monitor /dev/ttyUSB0 --baud 115200 --write "AT"
    serialport-monitor COM3 --baud 9600 --raw --duration 10
"""

import argparse
import asyncio
import logging
import sys

from serialport_bridge.core.config import Settings, setup_logging
from serialport_bridge.core.errors import SerialportError
from serialport_bridge.driver import create_local_backend
from serialport_bridge.session import Serialport

logger = logging.getLogger(__name__)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serial port monitor")
    parser.add_argument("path", nargs="?", help="Serial port path")
    parser.add_argument("--list", "-l", action="store_true", help="List available ports and exit")
    parser.add_argument("--baud", "-b", type=int, default=9600, help="Baud rate (default: 9600)")
    parser.add_argument("--data-bits", type=int, choices=[5, 6, 7, 8], default=8, help="Data bits (default: 8)")
    parser.add_argument("--parity", choices=["Odd", "Even"], help="Parity (default: none)")
    parser.add_argument("--stop-bits", type=int, choices=[1, 2], default=2, help="Stop bits (default: 2)")
    parser.add_argument("--flow-control", choices=["Software", "Hardware"], help="Flow control (default: none)")
    parser.add_argument("--encoding", default=settings.encoding, help="Text encoding for received data")
    parser.add_argument("--timeout", type=int, default=settings.default_timeout, help="Read timeout in ms")
    parser.add_argument("--size", type=int, default=settings.default_size, help="Bytes per read")
    parser.add_argument("--raw", action="store_true", help="Print received bytes as hex instead of text")
    parser.add_argument("--write", "-w", help="Text to send after opening")
    parser.add_argument("--duration", "-d", type=float, default=0, help="Seconds to monitor (0=until Ctrl-C)")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level")
    return parser


def print_chunk(data) -> None:
    if isinstance(data, bytes):
        print(data.hex(" "), flush=True)
    else:
        print(data, end="", flush=True)


async def run(args: argparse.Namespace) -> int:
    backend = create_local_backend()
    try:
        if args.list:
            for name in await Serialport.available_ports(backend.channel):
                print(name)
            return 0

        port = Serialport(
            path=args.path,
            baud_rate=args.baud,
            data_bits=args.data_bits,
            parity=args.parity,
            stop_bits=args.stop_bits,
            flow_control=args.flow_control,
            encoding=args.encoding,
            timeout=args.timeout,
            size=args.size,
            channel=backend.channel,
            feed=backend.feed,
        )
        async with port:
            await port.listen(print_chunk, decode=not args.raw)
            await port.read()
            if args.write:
                written = await port.write(args.write)
                logger.info("Sent %d bytes", written)
            if args.duration > 0:
                await asyncio.sleep(args.duration)
            else:
                await asyncio.Event().wait()
        return 0
    except SerialportError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await backend.registry.shutdown()


def main(argv: list[str] | None = None) -> int:
    settings = Settings()
    parser = build_parser(settings)
    args = parser.parse_args(argv)
    if not args.list and not args.path:
        parser.error("a port path is required unless --list is given")

    setup_logging(args.log_level)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
