"""
Exception hierarchy for the FFFPV1 flat panel.

All exceptions inherit from :class:`FlatPanelError` so callers can catch
broadly (``except FlatPanelError``) or narrowly (``except ProtocolError``).
"""

from __future__ import annotations


class FlatPanelError(Exception):
    """Base exception for all flat panel errors."""


class NotConnectedError(FlatPanelError):
    """Raised when an operation needs the panel but no validated link exists."""


class HandshakeError(FlatPanelError):
    """Raised when the ``PING``/``PONG`` liveness check fails during connect."""


class TransportError(FlatPanelError):
    """Raised on serial I/O failure: open, write, read, or disconnection."""


class TimeoutError(TransportError):  # noqa: A001 – intentional shadow of builtin
    """Raised when the serial layer returns before a full line was received."""


class ProtocolError(FlatPanelError):
    """Raised when a reply does not match ``RESULT:<command>@`` for the issued command.

    Device-reported ``ERROR:`` replies land here too; the raw line is kept
    on :attr:`raw` for diagnostics.
    """

    def __init__(self, message: str, command: str | None = None, raw: str | None = None) -> None:
        super().__init__(message)
        self.command = command
        self.raw = raw


class DeviceStateError(FlatPanelError):
    """Raised when a well-framed reply carries a payload that makes no sense."""

    def __init__(self, message: str, command: str | None = None, payload: str | None = None) -> None:
        super().__init__(message)
        self.command = command
        self.payload = payload


class ValidationError(FlatPanelError):
    """Raised when an argument fails pre-send validation."""


class NotImplementedFeatureError(FlatPanelError):
    """Raised for features the firmware intentionally does not support."""


class ActionNotImplementedError(NotImplementedFeatureError):
    """Raised by :meth:`FlatPanel.action` for every action name."""


class MethodNotImplementedError(NotImplementedFeatureError):
    """Raised by unsupported methods such as ``halt_cover`` and raw command hooks."""
