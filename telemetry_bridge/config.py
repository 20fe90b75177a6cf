"""Bridge configuration model and repository."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple
import json

import jsonschema

from telemetry_bridge.errors import ConfigError

DEFAULT_SOURCE = "192.168.1.87:10001"
DEFAULT_DEVICE_MAC = bytes.fromhex("D0CF5E82937B")


@dataclass(frozen=True)
class BridgeConfig:
    """Target configuration, immutable for the process lifetime."""

    source_host: str
    source_port: int
    modbus_host: str = "127.0.0.1"
    modbus_port: int = 502
    unit_id: int = 1
    modbus_timeout: float = 3.0
    device_mac: bytes = DEFAULT_DEVICE_MAC
    connect_timeout: float = 10.0
    read_timeout: Optional[float] = None
    tcp_keepalive: bool = True
    reconnect_initial_delay: float = 1.0
    reconnect_max_delay: float = 60.0
    reconnect_multiplier: float = 2.0

    @property
    def source_address(self) -> str:
        return f"{self.source_host}:{self.source_port}"

    @property
    def modbus_address(self) -> str:
        return f"{self.modbus_host}:{self.modbus_port}"


def parse_host_port(address: str) -> Tuple[str, int]:
    """Parse host and port from an address string (host:port)."""
    if ":" not in address:
        raise ConfigError(f"Invalid address format, expected host:port: {address}")

    host, port_str = address.rsplit(":", 1)
    host = host.strip("[]")
    if not host:
        raise ConfigError(f"Missing host in address: {address}")

    try:
        port = int(port_str)
    except ValueError as exc:
        raise ConfigError(f"Invalid port in address: {address}") from exc

    if not 0 < port < 65536:
        raise ConfigError(f"Port out of range in address: {address}")

    return host, port


def parse_mac(value: str) -> bytes:
    """Parse a MAC address written as 12 hex digits, optionally separated."""
    digits = value.replace(":", "").replace("-", "")
    try:
        mac = bytes.fromhex(digits)
    except ValueError as exc:
        raise ConfigError(f"Invalid MAC address: {value}") from exc

    if len(mac) != 6:
        raise ConfigError(f"MAC address must be 6 bytes: {value}")
    return mac


class ConfigRepository:
    """
    Repository for loading bridge configuration.

    The config file is optional: without one, defaults apply and the
    source address comes from the command line.
    """

    def __init__(self, path: str | None = None, schema_path: str | None = None) -> None:
        """Initialize with optional config file path and schema path."""
        self._path = Path(path) if path else None
        if schema_path is None:
            self._schema_path = Path(__file__).resolve().parent / "schemas" / "bridge_config.schema.json"
        else:
            self._schema_path = Path(schema_path)

    def load(self, source: str | None = None, modbus: Dict[str, object] | None = None) -> BridgeConfig:
        """Load and validate configuration.

        An explicit ``source`` address (``host:port``) takes precedence over
        the file's ``source`` section. Entries in ``modbus`` override the
        file's ``modbus`` section and are validated with it.
        """
        raw = self._read() if self._path is not None else {}
        if modbus and isinstance(raw, dict):
            raw = {**raw, "modbus": {**raw.get("modbus", {}), **modbus}}
        self._validate(raw)

        source_section = raw.get("source", {})
        modbus_section = raw.get("modbus", {})
        device_section = raw.get("device", {})
        reconnect_section = raw.get("reconnect", {})

        if source is not None:
            source_host, source_port = parse_host_port(source)
        else:
            default_host, default_port = parse_host_port(DEFAULT_SOURCE)
            source_host = source_section.get("host", default_host)
            source_port = int(source_section.get("port", default_port))

        defaults = BridgeConfig(source_host=source_host, source_port=source_port)
        mac = device_section.get("mac")

        config = BridgeConfig(
            source_host=source_host,
            source_port=source_port,
            modbus_host=modbus_section.get("host", defaults.modbus_host),
            modbus_port=int(modbus_section.get("port", defaults.modbus_port)),
            unit_id=int(modbus_section.get("unit_id", defaults.unit_id)),
            modbus_timeout=float(modbus_section.get("timeout", defaults.modbus_timeout)),
            device_mac=parse_mac(mac) if mac else defaults.device_mac,
            connect_timeout=float(source_section.get("connect_timeout", defaults.connect_timeout)),
            read_timeout=source_section.get("read_timeout", defaults.read_timeout),
            tcp_keepalive=bool(source_section.get("tcp_keepalive", defaults.tcp_keepalive)),
            reconnect_initial_delay=float(
                reconnect_section.get("initial_delay", defaults.reconnect_initial_delay)
            ),
            reconnect_max_delay=float(reconnect_section.get("max_delay", defaults.reconnect_max_delay)),
            reconnect_multiplier=float(
                reconnect_section.get("multiplier", defaults.reconnect_multiplier)
            ),
        )

        if config.reconnect_max_delay < config.reconnect_initial_delay:
            raise ConfigError("reconnect.max_delay must be >= reconnect.initial_delay")

        return config

    def _read(self) -> dict:
        """Read the raw JSON document from disk."""
        if not self._path.exists():
            raise ConfigError(f"Config file not found: {self._path}")

        try:
            return json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file: {exc}") from exc

    def _validate(self, raw: dict) -> None:
        """Validate config against the bundled JSON Schema."""
        try:
            schema = json.loads(self._schema_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Unable to load config schema {self._schema_path}: {exc}") from exc

        try:
            jsonschema.validate(instance=raw, schema=schema)
        except jsonschema.ValidationError as exc:
            raise ConfigError(f"Config schema validation failed: {exc.message}") from exc
