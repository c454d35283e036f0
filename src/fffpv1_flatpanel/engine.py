"""
Transaction engine: one command in, one payload out.

Builds the command line with :mod:`protocol`, pushes it through the shared
:class:`~fffpv1_flatpanel.link.LinkArbiter`, and validates the reply against
the command that was issued.  No retries, no recovery: every failure goes
straight back to the caller after a diagnostic log record.
"""

from __future__ import annotations

import logging
from contextlib import suppress
from typing import Optional

from .exceptions import FlatPanelError
from .link import LinkArbiter
from .protocol import Command, decode

logger = logging.getLogger(__name__)


class TransactionEngine:
    """Runs single command/response transactions against the panel.

    Args:
        link: The process-wide :class:`~fffpv1_flatpanel.link.LinkArbiter`.
    """

    def __init__(self, link: LinkArbiter) -> None:
        self._link = link

    def execute(
        self,
        name: str,
        args: Optional[str] = None,
        identifier: Optional[str] = None,
    ) -> str:
        """Send *name* (with optional *args*) and return the trimmed payload.

        Args:
            name: Command name, e.g. ``BRIGHTNESS_SET``.
            args: Optional argument string, e.g. ``"512"``.
            identifier: Caller label used in log records (defaults to *name*).

        Raises:
            ValidationError: If *name* or *args* cannot be encoded.
            NotConnectedError: If the link is down.
            TransportError: If the serial exchange fails.
            ProtocolError: If the reply is not ``RESULT:<name>@...``.
        """
        identifier = identifier or name
        message: Optional[str] = None
        raw: Optional[str] = None

        try:
            message = Command(name, args).encode()
            raw = self._link.transact(message)
            payload = decode(raw, name)
        except FlatPanelError as exc:
            _record_failure(identifier, message, raw, exc)
            raise

        logger.debug("%s: command '%s' with args '%s' returned %r", identifier, name, args, payload)
        return payload


def _record_failure(
    identifier: str, request: Optional[str], response: Optional[str], exc: Exception
) -> None:
    """Log a failed transaction.  Never raises."""
    with suppress(Exception):
        logger.error(
            "%s: request %r failed (response %r): %s",
            identifier,
            request.rstrip() if request else request,
            response,
            exc,
        )
