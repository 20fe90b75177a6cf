"""Telemetry bridge entrypoint."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
from typing import List, Optional

from telemetry_bridge.config import ConfigRepository
from telemetry_bridge.errors import ConfigError, ModbusSetupError
from telemetry_bridge.modbus_writer import ModbusWriter
from telemetry_bridge.supervisor import ConnectionSupervisor

logger = logging.getLogger("telemetry_bridge")

EXIT_MODBUS_SETUP = 1
EXIT_CONFIG = 2


def _raise_interrupt(signum, frame) -> None:
    """SIGTERM handler: unwind the same way as Ctrl-C."""
    raise KeyboardInterrupt


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="telemetry-bridge",
        description="Bridge a device telemetry TCP stream into local Modbus registers",
    )
    parser.add_argument(
        "source",
        nargs="?",
        default=None,
        help="Device address as host:port (default: 192.168.1.87:10001)",
    )
    parser.add_argument(
        "--config",
        "-c",
        default=os.environ.get("BRIDGE_CONFIG"),
        help="Path to JSON config file (env: BRIDGE_CONFIG)",
    )
    parser.add_argument("--modbus-host", default=None, help="Modbus server host (default: 127.0.0.1)")
    parser.add_argument("--modbus-port", type=int, default=None, help="Modbus server port (default: 502)")
    parser.add_argument("--unit-id", type=int, default=None, help="Modbus unit id (default: 1)")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("BRIDGE_LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (env: BRIDGE_LOG_LEVEL)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Application entrypoint; returns the process exit status."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides = {
        "host": args.modbus_host,
        "port": args.modbus_port,
        "unit_id": args.unit_id,
    }
    try:
        config = ConfigRepository(args.config).load(
            source=args.source,
            modbus={k: v for k, v in overrides.items() if v is not None},
        )
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return EXIT_CONFIG

    if args.source:
        logger.info("Parameter host: %s", config.source_address)

    writer = ModbusWriter(config)
    try:
        writer.connect()
    except ModbusSetupError as exc:
        logger.error("Unable to create Modbus client: %s", exc)
        return EXIT_MODBUS_SETUP

    supervisor = ConnectionSupervisor(config, writer)
    previous_handler = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        supervisor.run_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        signal.signal(signal.SIGTERM, previous_handler)
        writer.close()
        logger.info("Bridge stopped: %s", supervisor.stats())

    return 0


if __name__ == "__main__":
    sys.exit(main())
