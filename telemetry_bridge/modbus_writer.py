"""Modbus writer for the local register server."""

from __future__ import annotations

import logging

from pymodbus.client import ModbusTcpClient
from pymodbus.exceptions import ModbusException

from telemetry_bridge.config import BridgeConfig
from telemetry_bridge.decoder import DeviceMessage, RegisterWrite
from telemetry_bridge.errors import ModbusSetupError, WriteError

logger = logging.getLogger(__name__)


class ModbusWriter:
    """
    Writes decoded device messages into Modbus holding registers.

    Owns the single Modbus client for the process lifetime. It is
    connected once at startup and shared by every TCP session; sessions
    never close it.
    """

    def __init__(self, config: BridgeConfig, client: ModbusTcpClient | None = None) -> None:
        """Initialize writer with config and an optional prebuilt client."""
        self._config = config
        self._client = client
        self._connected = False

    @property
    def client(self) -> ModbusTcpClient | None:
        return self._client

    def connect(self) -> None:
        """Connect to the Modbus TCP server.

        Raises:
            ModbusSetupError: if the endpoint cannot be reached
        """
        host = self._config.modbus_host
        port = self._config.modbus_port
        if self._client is None:
            self._client = ModbusTcpClient(host=host, port=port, timeout=self._config.modbus_timeout)

        try:
            connected = self._client.connect()
        except (ModbusException, OSError) as exc:
            raise ModbusSetupError(f"Unable to connect to Modbus server {host}:{port}: {exc}") from exc

        if not connected:
            raise ModbusSetupError(f"Unable to connect to Modbus server {host}:{port}")

        self._connected = True
        logger.info("Connected to Modbus server %s:%s (unit %s)", host, port, self._config.unit_id)

    def write(self, message: DeviceMessage) -> None:
        """Apply all register writes of ``message`` in order.

        Writes are not transactional: a failure on a later register leaves
        the earlier ones applied.

        Raises:
            WriteError: on a transport failure or a Modbus exception response
        """
        if self._client is None or not self._connected:
            raise WriteError("Modbus client not connected")

        for register_write in message.register_writes():
            self._write_registers(register_write)

    def close(self) -> None:
        """Close the Modbus client."""
        if self._client is not None:
            self._client.close()
        self._connected = False

    def _write_registers(self, register_write: RegisterWrite) -> None:
        """Send one single- or multiple-register write."""
        address = register_write.address
        values = list(register_write.values)
        unit_id = self._config.unit_id

        try:
            if len(values) == 1:
                response = self._client.write_register(address, values[0], device_id=unit_id)
            else:
                response = self._client.write_registers(address, values, device_id=unit_id)
        except (ModbusException, OSError) as exc:
            raise WriteError(f"Modbus write error at {address}: {exc}", address=address) from exc

        if response.isError():
            raise WriteError(f"Modbus write rejected at {address}: {response}", address=address)

        logger.debug("Wrote %s to register %s", values, address)
