"""Shared pytest fixtures for FFFPV1 flat panel tests."""

from __future__ import annotations

import threading
import time
from collections import deque
from unittest.mock import patch

import pytest

from fffpv1_flatpanel import FlatPanel, LinkArbiter
from fffpv1_flatpanel.transport import SerialTransport

FAKE_PORT = "/dev/fake"


class PanelSimulator:
    """Minimal model of the FFFPV1 firmware.

    Answers one ``COMMAND:`` line with one ``RESULT:`` line, the way the
    real panel does.  Unknown commands get an ``ERROR:`` reply.
    """

    def __init__(self) -> None:
        self.cover = "CLOSED"
        self.brightness = 0

    def __call__(self, line: str) -> str:
        body = line.split(":", 1)[1] if ":" in line else line
        name, _, args = body.partition("@")
        if name == "PING":
            payload = "PONG"
        elif name == "COVER_GET_STATE":
            payload = self.cover
        elif name == "COVER_OPEN":
            self.cover = "OPEN"
            payload = "OK"
        elif name == "COVER_CLOSE":
            self.cover = "CLOSED"
            payload = "OK"
        elif name == "BRIGHTNESS_GET":
            payload = str(self.brightness)
        elif name == "BRIGHTNESS_SET":
            self.brightness = int(args)
            payload = args
        elif name == "BRIGHTNESS_RESET":
            self.brightness = 0
            payload = "0"
        else:
            return f"ERROR:{name}@Unknown command\n"
        return f"RESULT:{name}@{payload}\n"


class FakeSerial:
    """Lightweight stand-in for ``serial.Serial``.

    Implements the subset of the pyserial API used by
    :class:`~fffpv1_flatpanel.transport.SerialTransport`:
    ``write``, ``read_until``, ``flush``, ``reset_input_buffer``,
    ``reset_output_buffer``, ``close``, and ``is_open``.

    Each :meth:`write` is answered by the *responder* (a
    :class:`PanelSimulator` by default).  Call :meth:`set_response` to stage
    a raw reply for the **next** write instead; after that write the
    responder takes over again.
    """

    def __init__(self, responder=None) -> None:
        self.is_open: bool = True
        self.written: list[bytes] = []
        self.responder = responder or PanelSimulator()
        self._staged: deque[bytes] = deque()
        self._rx = b""

    # -- Helpers for tests --------------------------------------------------

    def set_response(self, text: str) -> None:
        """Stage a raw reply for the **next** write cycle."""
        self._staged.append(text.encode("ascii"))

    def inject(self, data: bytes) -> None:
        """Put bytes straight into the receive buffer (e.g. a stale line)."""
        self._rx += data

    @property
    def lines(self) -> list[str]:
        """Written lines, decoded and without terminators."""
        return [w.decode("ascii").rstrip("\n") for w in self.written]

    # -- pyserial interface -------------------------------------------------

    def write(self, data: bytes) -> int:
        self.written.append(data)
        if self._staged:
            self._rx += self._staged.popleft()
        else:
            self._rx += self.responder(data.decode("ascii").rstrip("\n")).encode("ascii")
        return len(data)

    def read_until(self, expected: bytes = b"\n", size: int | None = None) -> bytes:
        """Return everything up to and including *expected*."""
        idx = self._rx.find(expected)
        if idx == -1:
            # No terminator: hand back everything, as a timed-out read would
            data, self._rx = self._rx, b""
        else:
            end = idx + len(expected)
            data, self._rx = self._rx[:end], self._rx[end:]
        return data

    def flush(self) -> None:
        pass

    def reset_input_buffer(self) -> None:
        self._rx = b""

    def reset_output_buffer(self) -> None:
        pass

    def close(self) -> None:
        self.is_open = False


class EchoTransport:
    """Transport double that answers each command with its own line.

    ``COMMAND:X@Y`` comes back as ``RESULT:X@Y``; ``PING`` gets ``PONG``.
    The pending line lives in one shared slot and the reply is delayed, so
    two unserialized transactions would read each other's replies.
    """

    instances: list[EchoTransport] = []

    def __init__(self, port: str, baudrate: int = 57600, timeout: float | None = None) -> None:
        self.port = port
        self.is_open = False
        self.opened = 0
        self.closed = 0
        self.sent: list[str] = []
        self._pending = ""
        self._active = 0
        self.max_active = 0
        self._guard = threading.Lock()
        EchoTransport.instances.append(self)

    def open(self) -> None:
        self.is_open = True
        self.opened += 1

    def clear(self) -> None:
        self._pending = ""

    def close(self) -> None:
        self.is_open = False
        self.closed += 1

    def transmit(self, line: str) -> None:
        with self._guard:
            self._active += 1
            self.max_active = max(self.max_active, self._active)
        self.sent.append(line.rstrip("\n"))
        self._pending = line.rstrip("\n")
        time.sleep(0.001)

    def receive(self) -> str:
        time.sleep(0.001)
        line = self._pending
        with self._guard:
            self._active -= 1
        if line == "COMMAND:PING":
            return "RESULT:PING@PONG"
        return line.replace("COMMAND:", "RESULT:", 1)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_serial() -> FakeSerial:
    """Return a fresh ``FakeSerial`` instance."""
    return FakeSerial()


@pytest.fixture()
def transport(fake_serial: FakeSerial) -> SerialTransport:
    """Return an open ``SerialTransport`` wired to a fake serial port."""
    with patch("fffpv1_flatpanel.transport.serial.Serial", return_value=fake_serial):
        tx = SerialTransport(FAKE_PORT)
        tx.open()
        return tx


@pytest.fixture()
def link(fake_serial: FakeSerial) -> LinkArbiter:
    """Return a connected ``LinkArbiter`` wired to a fake serial port."""
    with patch("fffpv1_flatpanel.transport.serial.Serial", return_value=fake_serial):
        arbiter = LinkArbiter()
        arbiter.connect(FAKE_PORT)
        # Reset so tests don't see the PING handshake
        fake_serial.written.clear()
        return arbiter


@pytest.fixture()
def panel(link: LinkArbiter) -> FlatPanel:
    """Return a connected ``FlatPanel`` sharing the fixture link."""
    p = FlatPanel(link, FAKE_PORT)
    p.connect()
    return p


@pytest.fixture()
def echo_link() -> LinkArbiter:
    """Return a connected ``LinkArbiter`` over an :class:`EchoTransport`."""
    EchoTransport.instances.clear()
    arbiter = LinkArbiter(transport_factory=EchoTransport)
    arbiter.connect(FAKE_PORT)
    return arbiter
