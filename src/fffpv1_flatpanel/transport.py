"""
Serial transport layer for the FFFPV1 flat panel.

Owns exactly one serial line: opening, line-terminated writes and reads,
and buffer hygiene.  What the lines mean belongs to :mod:`protocol`, and who
else may use the port belongs to :mod:`link`.

Typical usage (via :class:`~fffpv1_flatpanel.link.LinkArbiter`)::

    transport = SerialTransport("/dev/ttyACM0")
    transport.open()
    transport.clear()
    transport.transmit("COMMAND:PING")
    line = transport.receive()
    transport.close()
"""

from __future__ import annotations

import logging

import serial

from .constants import DEFAULT_BAUD, DEFAULT_PORT, DEFAULT_TIMEOUT, MESSAGE_TERMINATOR
from .exceptions import TimeoutError, TransportError

logger = logging.getLogger(__name__)

_TERMINATOR = MESSAGE_TERMINATOR.encode("ascii")


class SerialTransport:
    """Manages the serial connection to an FFFPV1 panel.

    Args:
        port: Serial port path (e.g. ``/dev/ttyACM0`` or ``COM3``).
        baudrate: Baud rate (the firmware runs at 57600).
        timeout: Per-read timeout in seconds.  ``None`` blocks until the
            panel answers; no other timeout is layered on top.
    """

    def __init__(
        self,
        port: str = DEFAULT_PORT,
        baudrate: int = DEFAULT_BAUD,
        timeout: float | None = DEFAULT_TIMEOUT,
    ) -> None:
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self._ser: serial.Serial | None = None

    # -- Lifecycle ----------------------------------------------------------

    def open(self) -> None:
        """Open the serial port.

        Raises:
            TransportError: If the port cannot be opened.
        """
        logger.info("Opening serial port %s at %d baud", self.port, self.baudrate)
        try:
            self._ser = serial.Serial(
                port=self.port,
                baudrate=self.baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self.timeout,
            )
        except (serial.SerialException, OSError, ValueError) as exc:
            raise TransportError(f"Cannot open {self.port}: {exc}") from exc

    def clear(self) -> None:
        """Discard anything a previous session left in the buffers."""
        ser = self._require_open()
        try:
            ser.reset_input_buffer()
            ser.reset_output_buffer()
        except (serial.SerialException, OSError) as exc:
            raise TransportError(f"Cannot clear buffers on {self.port}: {exc}") from exc

    def close(self) -> None:
        """Close the serial port (safe to call multiple times)."""
        if self._ser and self._ser.is_open:
            self._ser.close()
            logger.info("Serial port %s closed", self.port)
        self._ser = None

    @property
    def is_open(self) -> bool:
        """Return ``True`` if the serial port is currently open."""
        return self._ser is not None and self._ser.is_open

    # -- I/O ----------------------------------------------------------------

    def transmit(self, line: str) -> None:
        """Write *line*, appending the ``\\n`` terminator if it is missing.

        Raises:
            TransportError: If the port is closed or the write fails.
        """
        ser = self._require_open()
        if not line.endswith(MESSAGE_TERMINATOR):
            line += MESSAGE_TERMINATOR
        logger.debug("TX: %s", line.rstrip())
        try:
            ser.write(line.encode("ascii"))
            ser.flush()
        except (serial.SerialException, OSError) as exc:
            raise TransportError(f"Write to {self.port} failed: {exc}") from exc

    def receive(self) -> str:
        """Block until a full line arrives and return it without the terminator.

        Raises:
            TransportError: If the port is closed or the read fails.
            TimeoutError: If the serial timeout expired before the terminator.
        """
        ser = self._require_open()
        try:
            data = ser.read_until(_TERMINATOR)
        except (serial.SerialException, OSError) as exc:
            raise TransportError(f"Read from {self.port} failed: {exc}") from exc

        if not data.endswith(_TERMINATOR):
            raise TimeoutError(
                f"No complete line from {self.port} (got {data!r})"
            )

        line = data[: -len(_TERMINATOR)].decode("ascii", errors="replace")
        logger.debug("RX: %s", line)
        return line

    # -- Internal -----------------------------------------------------------

    def _require_open(self) -> serial.Serial:
        """Return the open serial port or raise."""
        if not self.is_open:
            raise TransportError(f"Serial port {self.port} not open — call open() first.")
        assert self._ser is not None  # for type-checker
        return self._ser
