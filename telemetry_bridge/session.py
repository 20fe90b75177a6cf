"""Per-connection read/decode/write cycle."""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from telemetry_bridge.decoder import MessageDecoder
from telemetry_bridge.errors import BridgeError, DecodeError, WriteError
from telemetry_bridge.modbus_writer import ModbusWriter

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Lifecycle state of a session."""

    ACTIVE = "active"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class SessionResult:
    """Outcome of a finished session, used for logging and backoff only."""

    messages_written: int
    error: Optional[BridgeError]


class Session:
    """
    One TCP connection's lifetime.

    Decodes a message, writes it, and repeats until either step fails.
    Decode and write errors end the session and are not re-raised. The
    socket is closed on every exit path; the Modbus writer is left open.
    """

    def __init__(self, sock: socket.socket, decoder: MessageDecoder, writer: ModbusWriter) -> None:
        self._sock = sock
        self._decoder = decoder
        self._writer = writer
        self._state = SessionState.ACTIVE
        self._messages_written = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def messages_written(self) -> int:
        return self._messages_written

    def run(self) -> SessionResult:
        """Run the session to completion."""
        if self._state is SessionState.TERMINATED:
            raise RuntimeError("Session already terminated")

        error: Optional[BridgeError] = None
        stream = None
        try:
            stream = self._sock.makefile("rb")
            while True:
                message = self._decoder.decode(stream)
                logger.info("Received message #%s", message.msg_num_value)
                logger.debug("Message contents: %s", message)

                self._writer.write(message)
                self._messages_written += 1
                logger.info("Sent message #%s to Modbus", message.msg_num_value)
        except DecodeError as exc:
            error = exc
            logger.warning("Error reading message from host: %s: %s", type(exc).__name__, exc)
        except WriteError as exc:
            error = exc
            logger.warning("Error sending message to Modbus: %s", exc)
        finally:
            self._state = SessionState.TERMINATED
            if stream is not None:
                stream.close()
            self._sock.close()

        return SessionResult(messages_written=self._messages_written, error=error)
