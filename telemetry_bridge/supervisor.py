"""Connection supervisor: the process-lifetime reconnect loop."""

from __future__ import annotations

import logging
import socket
import time
from typing import Callable, Dict, Optional, Tuple

from telemetry_bridge.config import BridgeConfig
from telemetry_bridge.decoder import MessageDecoder
from telemetry_bridge.errors import ConnectFailure
from telemetry_bridge.modbus_writer import ModbusWriter
from telemetry_bridge.session import Session, SessionResult

logger = logging.getLogger(__name__)

Connector = Callable[[Tuple[str, int], float], socket.socket]


class ReconnectBackoff:
    """
    Bounded exponential backoff between connection attempts.

    The delay grows by ``multiplier`` after every failed connect and is
    capped at ``max_delay``. A successful connect resets it.
    """

    def __init__(self, initial_delay: float = 1.0, max_delay: float = 60.0, multiplier: float = 2.0) -> None:
        if initial_delay < 0:
            raise ValueError(f"initial_delay must be >= 0, got {initial_delay}")
        if max_delay < initial_delay:
            raise ValueError(f"max_delay must be >= initial_delay, got {max_delay}")
        if multiplier < 1:
            raise ValueError(f"multiplier must be >= 1, got {multiplier}")

        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self._delay = initial_delay

    @property
    def delay(self) -> float:
        """Delay to wait before the next attempt."""
        return self._delay

    def next_delay(self) -> float:
        """Return the current delay and grow it for the attempt after."""
        delay = self._delay
        self._delay = min(self._delay * self.multiplier, self.max_delay)
        return delay

    def reset(self) -> None:
        self._delay = self.initial_delay


class ConnectionSupervisor:
    """
    Keeps the bridge connected to the TCP source indefinitely.

    Each iteration opens a socket, runs one Session against it and waits
    before reconnecting. The Modbus writer is connected once by the caller
    and passed to every session unchanged.
    """

    def __init__(
        self,
        config: BridgeConfig,
        writer: ModbusWriter,
        decoder: Optional[MessageDecoder] = None,
        backoff: Optional[ReconnectBackoff] = None,
        connector: Connector = socket.create_connection,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize supervisor with a connected writer and collaborators."""
        self._config = config
        self._writer = writer
        self._decoder = decoder or MessageDecoder(config.device_mac)
        self._backoff = backoff or ReconnectBackoff(
            initial_delay=config.reconnect_initial_delay,
            max_delay=config.reconnect_max_delay,
            multiplier=config.reconnect_multiplier,
        )
        self._connector = connector
        self._sleep = sleep
        self._sessions = 0
        self._connect_failures = 0
        self._messages_written = 0

    @property
    def writer(self) -> ModbusWriter:
        return self._writer

    def run_forever(self) -> None:
        """Reconnect loop; only returns through an exception."""
        while True:
            self.run_once()

    def run_once(self) -> Optional[SessionResult]:
        """Run one connect attempt and, if it succeeds, one session.

        Returns the session result, or None if the connect failed.
        """
        try:
            sock = self._connect()
        except ConnectFailure as exc:
            self._connect_failures += 1
            logger.warning("%s", exc)
            self._pause(self._backoff.next_delay())
            return None

        self._sessions += 1
        result = Session(sock, self._decoder, self._writer).run()
        self._messages_written += result.messages_written
        logger.info(
            "Session %s to %s ended after %s message(s)",
            self._sessions,
            self._config.source_address,
            result.messages_written,
        )

        # Only unreachable hosts back off; a session that connected reconnects
        # after the initial delay whatever ended it.
        self._backoff.reset()
        self._pause(self._backoff.initial_delay)
        return result

    def stats(self) -> Dict[str, object]:
        """Return counters for the supervisor's lifetime."""
        return {
            "source": self._config.source_address,
            "sessions": self._sessions,
            "connect_failures": self._connect_failures,
            "messages_written": self._messages_written,
            "next_delay": self._backoff.delay,
        }

    def _connect(self) -> socket.socket:
        """Open and configure a socket to the TCP source."""
        address = (self._config.source_host, self._config.source_port)
        logger.info("Connecting to %s ...", self._config.source_address)
        try:
            sock = self._connector(address, self._config.connect_timeout)
        except (OSError, UnicodeError) as exc:
            raise ConnectFailure(f"Unable to connect to {self._config.source_address}: {exc}") from exc

        try:
            sock.settimeout(self._config.read_timeout)
            if self._config.tcp_keepalive:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        except OSError as exc:
            sock.close()
            raise ConnectFailure(f"Unable to configure socket to {self._config.source_address}: {exc}") from exc

        logger.info("Connected to %s", self._config.source_address)
        return sock

    def _pause(self, delay: float) -> None:
        if delay > 0:
            logger.info("Reconnecting in %.1fs", delay)
            self._sleep(delay)
