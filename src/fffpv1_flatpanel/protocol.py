"""
FFFPV1 wire protocol: command building and response parsing.

Messages are single ``\\n``-terminated ASCII lines::

    COMMAND:<NAME>[@<ARGS>]      host → panel
    RESULT:<NAME>@<PAYLOAD>      panel → host, success
    ERROR:<NAME>@<DETAILS>       panel → host, failure

This module is pure: it never touches the serial port.  That belongs to
:class:`~fffpv1_flatpanel.transport.SerialTransport`, and sequencing
belongs to :class:`~fffpv1_flatpanel.engine.TransactionEngine`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .constants import (
    ARGS_SEPARATOR,
    COMMAND_TYPE,
    ERROR_TYPE,
    MESSAGE_TERMINATOR,
    RESULT_TYPE,
    TYPE_SEPARATOR,
)
from .exceptions import ProtocolError, ValidationError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class CoverState(Enum):
    """Dust cover position as last reported by the firmware."""

    OPEN = "open"
    CLOSED = "closed"
    MOVING = "moving"
    UNKNOWN = "unknown"


class CalibratorState(Enum):
    """Light panel availability.  The FFFPV1 always has a calibrator."""

    READY = "ready"


# Firmware cover tokens; anything else maps to UNKNOWN
COVER_STATES = {
    "OPEN": CoverState.OPEN,
    "OPENING": CoverState.MOVING,
    "CLOSING": CoverState.MOVING,
    "CLOSED": CoverState.CLOSED,
}

# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

_NAME_RE = re.compile(r"[A-Z_]+")


@dataclass(frozen=True)
class Command:
    """An outgoing command, e.g. ``Command("BRIGHTNESS_SET", "512")``."""

    name: str
    args: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not _NAME_RE.fullmatch(self.name):
            raise ValidationError(f"Command name must match [A-Z_]+, got {self.name!r}")
        if self.args is not None and MESSAGE_TERMINATOR in self.args:
            raise ValidationError(f"Arguments for {self.name} must fit on one line")
        if self.args is not None and not self.args.isascii():
            raise ValidationError(f"Arguments for {self.name} must be ASCII, got {self.args!r}")

    def encode(self) -> str:
        """Return the wire form, terminator included."""
        return encode(self.name, self.args)


@dataclass(frozen=True)
class Result:
    """A ``RESULT:`` reply."""

    command: str
    payload: str


@dataclass(frozen=True)
class ErrorReply:
    """An ``ERROR:`` reply reported by the firmware."""

    command: str
    details: str


Response = Union[Result, ErrorReply]


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode(name: str, args: Optional[str] = None) -> str:
    """Build ``COMMAND:<name>[@<args>]`` with the line terminator appended.

    Blank *args* are left out, so ``encode("PING", "")`` is ``COMMAND:PING``.
    """
    message = f"{COMMAND_TYPE}{TYPE_SEPARATOR}{name}"
    if args is not None and args.strip():
        message = f"{message}{ARGS_SEPARATOR}{args}"
    if not message.endswith(MESSAGE_TERMINATOR):
        message += MESSAGE_TERMINATOR
    return message


def result_prefix(name: str) -> str:
    """Return the exact prefix a successful reply to *name* starts with."""
    return f"{RESULT_TYPE}{TYPE_SEPARATOR}{name}{ARGS_SEPARATOR}"


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def parse_response(raw: str) -> Response:
    """Parse a raw device line into a :class:`Result` or :class:`ErrorReply`.

    Matching is case-sensitive and the raw line is not trimmed; only the
    payload is.

    Raises:
        ProtocolError: If *raw* is not a well-formed ``RESULT``/``ERROR`` line.
    """
    msg_type, sep, body = raw.partition(TYPE_SEPARATOR)
    if not sep or msg_type not in (RESULT_TYPE, ERROR_TYPE):
        raise ProtocolError(f"Unrecognised reply {raw!r}", raw=raw)

    name, sep, rest = body.partition(ARGS_SEPARATOR)
    if not sep or not name or TYPE_SEPARATOR in name:
        raise ProtocolError(f"Malformed {msg_type} reply {raw!r}", raw=raw)

    if msg_type == RESULT_TYPE:
        return Result(command=name, payload=rest.strip())
    return ErrorReply(command=name, details=rest.strip())


def decode(raw: str, expected_command: str) -> str:
    """Return the trimmed payload of *raw* if it answers *expected_command*.

    Only a line starting with exactly ``RESULT:<expected_command>@`` is
    accepted.  Firmware ``ERROR:`` replies, results for another command and
    garbage all raise the same :class:`ProtocolError`.
    """
    try:
        response = parse_response(raw)
    except ProtocolError as exc:
        raise ProtocolError(
            f"Command '{expected_command}' failed: {exc}", command=expected_command, raw=raw
        ) from exc

    if isinstance(response, ErrorReply):
        raise ProtocolError(
            f"Command '{expected_command}' failed: device reported "
            f"{response.command}: {response.details!r}",
            command=expected_command,
            raw=raw,
        )
    if response.command != expected_command:
        raise ProtocolError(
            f"Command '{expected_command}' failed: reply is for "
            f"'{response.command}' ({raw!r})",
            command=expected_command,
            raw=raw,
        )
    return response.payload
