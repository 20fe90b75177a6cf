"""Telemetry bridge package."""

__all__ = [
    "BridgeConfig",
    "ConfigRepository",
    "DeviceMessage",
    "RegisterWrite",
    "MessageDecoder",
    "ModbusWriter",
    "Session",
    "SessionResult",
    "SessionState",
    "ConnectionSupervisor",
    "ReconnectBackoff",
    "BridgeError",
    "ConfigError",
    "ConnectFailure",
    "ModbusSetupError",
    "DecodeError",
    "ConnectionClosed",
    "MalformedRecord",
    "DecodeTimeout",
    "WriteError",
]

from telemetry_bridge.config import BridgeConfig, ConfigRepository
from telemetry_bridge.decoder import DeviceMessage, MessageDecoder, RegisterWrite
from telemetry_bridge.modbus_writer import ModbusWriter
from telemetry_bridge.session import Session, SessionResult, SessionState
from telemetry_bridge.supervisor import ConnectionSupervisor, ReconnectBackoff
from telemetry_bridge.errors import (
    BridgeError,
    ConfigError,
    ConnectFailure,
    ConnectionClosed,
    DecodeError,
    DecodeTimeout,
    MalformedRecord,
    ModbusSetupError,
    WriteError,
)
