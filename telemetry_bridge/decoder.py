"""Device record decoder.

Each record on the device stream is a fixed 27 byte frame::

    0   2  start sequence 0x19 0x00
    2   6  device MAC address
    8   1  payload length, always 0x12
    9  18  payload: (register, value) pairs, multi-byte values little endian

The decoder performs no resynchronization: a stream is assumed to start at
a record boundary, and a malformed record ends the session.
"""

from __future__ import annotations

from dataclasses import dataclass
from struct import Struct
from typing import BinaryIO, Iterator, Tuple

from telemetry_bridge.config import DEFAULT_DEVICE_MAC
from telemetry_bridge.errors import ConnectionClosed, DecodeTimeout, MalformedRecord

START_SEQUENCE = b"\x19\x00"
PAYLOAD_LENGTH = 0x12
RECORD_SIZE = 27

_HEADER = Struct("<2s6sB")
_PAYLOAD = Struct("<5B3HBH4B")


@dataclass(frozen=True)
class RegisterWrite:
    """Values to write starting at a holding register address."""

    address: int
    values: Tuple[int, ...]


@dataclass(frozen=True)
class DeviceMessage:
    """One decoded device record."""

    mac: bytes
    batt_pid: int
    batt_value: int
    temp_pid: int
    temp_value: int
    vib_pid: int
    vib_x: int
    vib_y: int
    vib_z: int
    msg_num_pid: int
    msg_num_value: int
    version_pid: int
    version_value: int
    rssi_pid: int
    rssi_value: int

    def register_writes(self) -> Iterator[RegisterWrite]:
        """Yield register writes in the order they are applied."""
        yield RegisterWrite(self.batt_pid, (self.batt_value,))
        yield RegisterWrite(self.temp_pid, (self.temp_value,))
        yield RegisterWrite(self.vib_pid, (self.vib_x, self.vib_y, self.vib_z))
        yield RegisterWrite(self.msg_num_pid, (self.msg_num_value,))
        yield RegisterWrite(self.version_pid, (self.version_value,))
        yield RegisterWrite(self.rssi_pid, (self.rssi_value,))


class MessageDecoder:
    """Reads one DeviceMessage per call from a binary stream."""

    def __init__(self, device_mac: bytes = DEFAULT_DEVICE_MAC) -> None:
        if len(device_mac) != 6:
            raise ValueError(f"device_mac must be 6 bytes, got {len(device_mac)}")
        self._device_mac = bytes(device_mac)

    def decode(self, stream: BinaryIO) -> DeviceMessage:
        """Consume exactly one record from ``stream`` and decode it.

        Raises:
            ConnectionClosed: stream ended or was reset mid-record
            MalformedRecord: header does not match the record layout
            DecodeTimeout: a read exceeded the socket timeout
        """
        return self.parse(self._read_record(stream))

    def parse(self, record: bytes) -> DeviceMessage:
        """Decode a complete record held in memory."""
        if len(record) != RECORD_SIZE:
            raise MalformedRecord(f"Record must be {RECORD_SIZE} bytes, got {len(record)}")

        start, mac, length = _HEADER.unpack_from(record)
        if start != START_SEQUENCE:
            raise MalformedRecord("Unrecognised start sequence")
        if mac != self._device_mac:
            raise MalformedRecord("Unexpected MAC address")
        if length != PAYLOAD_LENGTH:
            raise MalformedRecord("Length of payload must be 0x12 (18 bytes)")

        (
            batt_pid,
            batt_value,
            temp_pid,
            temp_value,
            vib_pid,
            vib_x,
            vib_y,
            vib_z,
            msg_num_pid,
            msg_num_value,
            version_pid,
            version_value,
            rssi_pid,
            rssi_value,
        ) = _PAYLOAD.unpack_from(record, _HEADER.size)

        return DeviceMessage(
            mac=mac,
            batt_pid=batt_pid,
            batt_value=batt_value,
            temp_pid=temp_pid,
            temp_value=temp_value,
            vib_pid=vib_pid,
            vib_x=vib_x,
            vib_y=vib_y,
            vib_z=vib_z,
            msg_num_pid=msg_num_pid,
            msg_num_value=msg_num_value,
            version_pid=version_pid,
            version_value=version_value,
            rssi_pid=rssi_pid,
            rssi_value=rssi_value,
        )

    @staticmethod
    def _read_record(stream: BinaryIO) -> bytes:
        """Read until a full record is buffered."""
        buffer = bytearray()
        while len(buffer) < RECORD_SIZE:
            try:
                chunk = stream.read(RECORD_SIZE - len(buffer))
            except TimeoutError as exc:
                raise DecodeTimeout(
                    f"Timed out after {len(buffer)} of {RECORD_SIZE} bytes"
                ) from exc
            except OSError as exc:
                raise ConnectionClosed(f"Stream error while reading record: {exc}") from exc

            if not chunk:
                raise ConnectionClosed(
                    f"Stream closed after {len(buffer)} of {RECORD_SIZE} bytes"
                )
            buffer.extend(chunk)

        return bytes(buffer)
