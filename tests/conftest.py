"""Shared pytest fixtures for telemetry bridge tests."""

from unittest.mock import Mock

import pytest

from helpers import REFERENCE_RECORDS, ok_response
from telemetry_bridge.config import BridgeConfig
from telemetry_bridge.modbus_writer import ModbusWriter


@pytest.fixture
def reference_stream() -> bytes:
    """All reference records back to back."""
    return b"".join(REFERENCE_RECORDS)


@pytest.fixture
def bridge_config() -> BridgeConfig:
    return BridgeConfig(
        source_host="192.168.1.87",
        source_port=10001,
        unit_id=3,
        reconnect_initial_delay=1.0,
        reconnect_max_delay=8.0,
        reconnect_multiplier=2.0,
    )


@pytest.fixture
def mock_client():
    """Mock pymodbus sync TCP client that accepts every write."""
    client = Mock()
    client.connect = Mock(return_value=True)
    client.close = Mock()
    client.write_register = Mock(return_value=ok_response())
    client.write_registers = Mock(return_value=ok_response())
    return client


@pytest.fixture
def writer(bridge_config, mock_client) -> ModbusWriter:
    """Connected writer backed by the mock client."""
    modbus_writer = ModbusWriter(bridge_config, client=mock_client)
    modbus_writer.connect()
    return modbus_writer
