"""Tests for configuration loading."""

import json

import pytest

from telemetry_bridge.config import (
    DEFAULT_DEVICE_MAC,
    BridgeConfig,
    ConfigRepository,
    parse_host_port,
    parse_mac,
)
from telemetry_bridge.errors import ConfigError


@pytest.fixture
def write_config(tmp_path):
    def _write(raw) -> str:
        path = tmp_path / "bridge.json"
        path.write_text(raw if isinstance(raw, str) else json.dumps(raw), encoding="utf-8")
        return str(path)

    return _write


class TestParseHostPort:
    def test_valid(self):
        assert parse_host_port("10.0.0.5:10001") == ("10.0.0.5", 10001)

    def test_hostname(self):
        assert parse_host_port("device.local:502") == ("device.local", 502)

    def test_bracketed_ipv6(self):
        assert parse_host_port("[::1]:10001") == ("::1", 10001)

    @pytest.mark.parametrize("address", ["10.0.0.5", ":10001", "host:abc", "host:0", "host:70000"])
    def test_invalid(self, address):
        with pytest.raises(ConfigError):
            parse_host_port(address)


class TestParseMac:
    @pytest.mark.parametrize("value", ["D0CF5E82937B", "d0:cf:5e:82:93:7b", "D0-CF-5E-82-93-7B"])
    def test_formats(self, value):
        assert parse_mac(value) == DEFAULT_DEVICE_MAC

    @pytest.mark.parametrize("value", ["D0CF5E82", "zz:cf:5e:82:93:7b"])
    def test_invalid(self, value):
        with pytest.raises(ConfigError):
            parse_mac(value)


class TestConfigRepository:
    def test_defaults_without_file(self):
        config = ConfigRepository().load()

        assert config == BridgeConfig(source_host="192.168.1.87", source_port=10001)
        assert config.modbus_address == "127.0.0.1:502"
        assert config.read_timeout is None

    def test_source_argument(self):
        config = ConfigRepository().load(source="10.1.1.1:4000")

        assert config.source_address == "10.1.1.1:4000"

    def test_full_file(self, write_config):
        path = write_config(
            {
                "source": {
                    "host": "10.2.2.2",
                    "port": 9000,
                    "connect_timeout": 5,
                    "read_timeout": 30,
                    "tcp_keepalive": False,
                },
                "modbus": {"host": "localhost", "port": 5020, "unit_id": 7, "timeout": 1.5},
                "device": {"mac": "01:02:03:04:05:06"},
                "reconnect": {"initial_delay": 0.5, "max_delay": 30, "multiplier": 3},
            }
        )

        config = ConfigRepository(path).load()

        assert config.source_address == "10.2.2.2:9000"
        assert config.connect_timeout == 5.0
        assert config.read_timeout == 30
        assert config.tcp_keepalive is False
        assert config.modbus_address == "localhost:5020"
        assert config.unit_id == 7
        assert config.modbus_timeout == 1.5
        assert config.device_mac == bytes([1, 2, 3, 4, 5, 6])
        assert config.reconnect_initial_delay == 0.5
        assert config.reconnect_max_delay == 30.0
        assert config.reconnect_multiplier == 3.0

    def test_source_argument_overrides_file(self, write_config):
        path = write_config({"source": {"host": "10.2.2.2", "port": 9000}})

        config = ConfigRepository(path).load(source="10.3.3.3:1234")

        assert config.source_address == "10.3.3.3:1234"

    def test_file_host_without_port_uses_default_port(self, write_config):
        path = write_config({"source": {"host": "10.2.2.2"}})

        assert ConfigRepository(path).load().source_port == 10001

    def test_file_port_without_host_uses_default_host(self, write_config):
        path = write_config({"source": {"port": 9000}})

        config = ConfigRepository(path).load()

        assert config.source_host == "192.168.1.87"
        assert config.source_port == 9000

    def test_modbus_overrides_replace_file_values(self, write_config):
        path = write_config({"modbus": {"host": "localhost", "port": 5020, "unit_id": 7}})

        config = ConfigRepository(path).load(modbus={"port": 1502, "unit_id": 2})

        assert config.modbus_address == "localhost:1502"
        assert config.unit_id == 2

    @pytest.mark.parametrize("override", [{"port": 70000}, {"port": 0}, {"unit_id": 256}])
    def test_modbus_overrides_are_validated(self, override):
        with pytest.raises(ConfigError, match="schema validation failed"):
            ConfigRepository().load(modbus=override)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            ConfigRepository(str(tmp_path / "missing.json")).load()

    def test_invalid_json(self, write_config):
        with pytest.raises(ConfigError, match="Invalid JSON"):
            ConfigRepository(write_config("{not json")).load()

    @pytest.mark.parametrize(
        "raw",
        [
            {"modbus": {"port": 0}},
            {"modbus": {"unit_id": 300}},
            {"source": {"read_timeout": 0}},
            {"device": {"mac": "nope"}},
            {"reconnect": {"multiplier": 0.5}},
            {"unknown": {}},
        ],
    )
    def test_schema_violations(self, write_config, raw):
        with pytest.raises(ConfigError, match="schema validation failed"):
            ConfigRepository(write_config(raw)).load()

    def test_max_delay_below_initial(self, write_config):
        path = write_config({"reconnect": {"initial_delay": 10, "max_delay": 1}})

        with pytest.raises(ConfigError, match="max_delay"):
            ConfigRepository(path).load()

    def test_missing_schema(self, tmp_path):
        with pytest.raises(ConfigError, match="config schema"):
            ConfigRepository(schema_path=str(tmp_path / "none.json")).load()
