"""
Link arbiter: one serial line, many callers.

A process talks to its flat panel through exactly one
:class:`LinkArbiter`.  Every :class:`~fffpv1_flatpanel.controller.FlatPanel`
receives the same instance, so they share one physical connection, one
connected flag, and one lock.

Locking rules:

* ``connect``, ``disconnect`` and ``transact`` hold ``_lock`` for their
  whole duration, so a command line and its reply are never interleaved
  with another caller's traffic.
* :attr:`LinkArbiter.is_connected` never takes the lock.  It is read from
  code that already holds it (e.g. a failing connect), and the flag is only
  ever written under the lock, so a plain attribute read is enough.
"""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from typing import Callable, Optional

from .constants import CMD_PING, DEFAULT_BAUD, DEFAULT_TIMEOUT, PING_RESULT_PONG
from .exceptions import FlatPanelError, HandshakeError, NotConnectedError
from .protocol import decode, encode
from .transport import SerialTransport

logger = logging.getLogger(__name__)

TransportFactory = Callable[..., SerialTransport]


class LinkArbiter:
    """Serializes all traffic to the panel over a single transport.

    Args:
        transport_factory: Called as ``factory(port, baudrate=..., timeout=...)``
            to build the transport on connect.  Defaults to
            :class:`~fffpv1_flatpanel.transport.SerialTransport`.
        baudrate: Baud rate handed to the factory.
        timeout: Read timeout handed to the factory (``None`` blocks).
    """

    def __init__(
        self,
        transport_factory: TransportFactory = SerialTransport,
        baudrate: int = DEFAULT_BAUD,
        timeout: float | None = DEFAULT_TIMEOUT,
    ) -> None:
        self._factory = transport_factory
        self.baudrate = baudrate
        self.timeout = timeout
        self._lock = threading.Lock()
        self._transport: Optional[SerialTransport] = None
        self._port: Optional[str] = None
        self._refcount = 0
        self._generation = 0
        self._validated = False
        self._connected = False

    # -- State (lock-free) --------------------------------------------------

    @property
    def is_connected(self) -> bool:
        """``True`` while the link is open and passed the liveness handshake."""
        return self._connected

    @property
    def port(self) -> Optional[str]:
        """Port of the current connection, or ``None``."""
        return self._port

    @property
    def reference_count(self) -> int:
        """Number of outstanding :meth:`connect` calls not yet released."""
        return self._refcount

    @property
    def generation(self) -> int:
        """Token of the current connection; bumped each time the port is opened."""
        return self._generation

    # -- Lifecycle ----------------------------------------------------------

    def connect(self, port: str) -> int:
        """Open and validate a connection to *port*, or join the existing one.

        Returns the connection generation the caller now holds a reference on.

        Raises:
            TransportError: If the port cannot be opened.
            HandshakeError: If the panel does not answer ``PING`` with ``PONG``.
        """
        with self._lock:
            if self.is_connected:
                if port == self._port:
                    self._refcount += 1
                    logger.debug("Joined link on %s (refs=%d)", port, self._refcount)
                    return self._generation
                logger.warning(
                    "Switching link from %s to %s; dropping %d reference(s)",
                    self._port,
                    port,
                    self._refcount,
                )
                self._close_locked()

            logger.info("Connecting to flat panel on %s", port)
            transport = self._factory(port, baudrate=self.baudrate, timeout=self.timeout)
            transport.open()

            try:
                transport.clear()
                self._handshake(transport)
            except FlatPanelError as exc:
                with suppress(Exception):
                    transport.close()
                logger.error("Connection to %s failed: %s", port, exc)
                if isinstance(exc, HandshakeError):
                    raise
                raise HandshakeError(f"No valid device on {port}: {exc}") from exc

            self._transport = transport
            self._port = port
            self._validated = True
            self._refcount = 1
            self._generation += 1
            self._connected = True
            logger.info("Connected to flat panel on %s", port)
            return self._generation

    def disconnect(self, force: bool = False, generation: Optional[int] = None) -> None:
        """Release one reference; close the port when none remain.

        With *force* the port is closed regardless of other holders.
        When *generation* is given and no longer matches the live connection,
        the caller's reference already went away with the old connection and
        nothing is released.  Does nothing when already disconnected.
        """
        with self._lock:
            if not self.is_connected:
                return
            if generation is not None and generation != self._generation:
                logger.debug("Ignoring release of stale link generation %d", generation)
                return
            self._refcount -= 1
            if self._refcount > 0 and not force:
                logger.debug("Released link on %s (refs=%d)", self._port, self._refcount)
                return
            self._close_locked()

    # -- Traffic ------------------------------------------------------------

    def transact(self, message: str) -> str:
        """Send one encoded *message* and return the raw reply line.

        The write and the read happen under the lock as one atomic unit.

        Raises:
            NotConnectedError: If no validated connection exists.
            TransportError: If the write or read fails.  The connection
                state is left untouched.
        """
        if not self.is_connected:
            raise NotConnectedError("Flat panel not connected")

        with self._lock:
            # A disconnect may have won the race for the lock
            if self._transport is None:
                raise NotConnectedError("Flat panel not connected")
            self._transport.transmit(message)
            return self._transport.receive()

    # -- Internal -----------------------------------------------------------

    @staticmethod
    def _handshake(transport: SerialTransport) -> None:
        """Run ``PING`` on a fresh transport.  Caller holds the lock."""
        transport.transmit(encode(CMD_PING))
        raw = transport.receive()
        payload = decode(raw, CMD_PING)
        if payload != PING_RESULT_PONG:
            raise HandshakeError(
                f"Incorrect device: ping answered {payload!r} instead of {PING_RESULT_PONG!r}"
            )
        logger.debug("Handshake OK")

    def _close_locked(self) -> None:
        """Tear down the current connection.  Caller holds the lock."""
        transport = self._transport
        port = self._port
        self._connected = False
        self._validated = False
        self._refcount = 0
        self._transport = None
        self._port = None
        if transport is not None:
            transport.close()
        logger.info("Disconnected from flat panel on %s", port)
