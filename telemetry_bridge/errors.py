"""Custom exceptions for the telemetry bridge."""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for all bridge errors."""


class ConfigError(BridgeError):
    """Raised when config is invalid or missing."""


class ConnectFailure(BridgeError):
    """Raised when the TCP source cannot be reached."""


class ModbusSetupError(BridgeError):
    """Raised when the local Modbus endpoint cannot be reached at startup."""


class DecodeError(BridgeError):
    """Raised when a device record cannot be read from the stream."""


class ConnectionClosed(DecodeError):
    """Raised when the stream ends or is reset before a full record is read."""


class MalformedRecord(DecodeError):
    """Raised when the bytes read do not match the record layout."""


class DecodeTimeout(DecodeError):
    """Raised when a read blocks past the socket read timeout."""


class WriteError(BridgeError):
    """Raised when a register write against the Modbus endpoint fails."""

    def __init__(self, message: str, address: int | None = None) -> None:
        super().__init__(message)
        self.address = address
