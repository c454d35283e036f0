"""
FFFPV1 Flat Panel Interface

Clean Python API for the Le Telescope FFFPV1 flat panel: a motorized dust
cover plus a 10-bit dimmable light panel, driven over USB serial.

Protocol details:
    - Baud: 57600, 8N1
    - Line termination: LF
    - Request:  COMMAND:<NAME>[@<ARGS>]
    - Replies:  RESULT:<NAME>@<PAYLOAD> (ok), ERROR:<NAME>@<DETAILS> (error)

Every property read and every action is one live transaction; nothing is
cached, since the authoritative state lives in the firmware.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .constants import (
    BRIGHTNESS_RESET_RESULT,
    CMD_BRIGHTNESS_GET,
    CMD_BRIGHTNESS_RESET,
    CMD_BRIGHTNESS_SET,
    CMD_COVER_CLOSE,
    CMD_COVER_GET_STATE,
    CMD_COVER_OPEN,
    DEFAULT_PORT,
    DRIVER_DESCRIPTION,
    DRIVER_NAME,
    GENERIC_RESULT_OK,
    INTERFACE_VERSION,
    MAX_BRIGHTNESS,
    MIN_BRIGHTNESS,
)
from .engine import TransactionEngine
from .exceptions import (
    ActionNotImplementedError,
    DeviceStateError,
    MethodNotImplementedError,
    NotConnectedError,
    ValidationError,
)
from .link import LinkArbiter
from .protocol import COVER_STATES, CalibratorState, CoverState

logger = logging.getLogger(__name__)

_LEVEL_RE = re.compile(r"-?[0-9]+")

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _validate_brightness(level: int) -> None:
    if isinstance(level, bool) or not isinstance(level, int):
        raise ValidationError(f"Brightness must be an integer, got {level!r}")
    if level < MIN_BRIGHTNESS or level > MAX_BRIGHTNESS:
        raise ValidationError(
            f"Invalid brightness {level}. Should be an int ranging from "
            f"{MIN_BRIGHTNESS} to {MAX_BRIGHTNESS}"
        )


def _invalid_response(identifier: str, command: str, payload: str) -> DeviceStateError:
    message = f"Invalid response {payload!r} from device. Hardware may be in a weird state"
    logger.error("%s: %s", identifier, message)
    return DeviceStateError(message, command=command, payload=payload)


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------


class FlatPanel:
    """Interface for one FFFPV1 flat panel.

    All instances built on the same :class:`LinkArbiter` share its serial
    line and see the same :attr:`connected` state.  Use as a context manager
    for automatic connection handling::

        link = LinkArbiter()
        with FlatPanel(link, "/dev/ttyACM0") as panel:
            panel.open_cover()
            panel.calibrator_on(512)
    """

    def __init__(self, link: LinkArbiter, port: str = DEFAULT_PORT) -> None:
        self.port = port
        self._link = link
        self._engine = TransactionEngine(link)
        # Link generation this instance holds a reference on, or None
        self._generation: Optional[int] = None

    # -- Context manager ----------------------------------------------------

    def __enter__(self) -> FlatPanel:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    # -- Connection ---------------------------------------------------------

    @property
    def connected(self) -> bool:
        """Shared connection state of the underlying link."""
        return self._link.is_connected

    @connected.setter
    def connected(self, value: bool) -> None:
        if value:
            self.connect()
        else:
            self.disconnect()

    def connect(self) -> None:
        """Attach to the panel on :attr:`port`, opening the link if needed.

        Raises:
            TransportError: If the port cannot be opened.
            HandshakeError: If the device on the port is not an FFFPV1.
        """
        if self._holds_current_link():
            return
        logger.info("Connecting to device on port %s", self.port)
        self._generation = self._link.connect(self.port)

    def disconnect(self) -> None:
        """Release this instance's hold on the link (safe to call multiple times)."""
        generation, self._generation = self._generation, None
        if generation is None:
            return
        logger.info("Disconnecting from port %s", self.port)
        self._link.disconnect(generation=generation)

    def _holds_current_link(self) -> bool:
        return (
            self._generation is not None
            and self._link.is_connected
            and self._link.generation == self._generation
            and self._link.port == self.port
        )

    def _check_connected(self, identifier: str) -> None:
        if not self._link.is_connected:
            raise NotConnectedError(f"{identifier}: Flat panel not connected")

    # -- Identity -----------------------------------------------------------

    @property
    def name(self) -> str:
        return DRIVER_NAME

    @property
    def description(self) -> str:
        return DRIVER_DESCRIPTION

    @property
    def driver_version(self) -> str:
        """``major.minor`` of the installed package."""
        from . import __version__

        major, minor = __version__.split(".")[:2]
        return f"{major}.{minor}"

    @property
    def driver_info(self) -> str:
        return f"{DRIVER_NAME}. Version: {self.driver_version}"

    @property
    def interface_version(self) -> int:
        return INTERFACE_VERSION

    # -- Actions & raw commands ---------------------------------------------

    @property
    def supported_actions(self) -> list[str]:
        return []

    def action(self, action_name: str, parameters: str = "") -> str:
        """Custom actions are not supported."""
        logger.info("Action %s, parameters %s is not implemented", action_name, parameters)
        raise ActionNotImplementedError(f"Action {action_name} is not implemented by this driver")

    def command_blind(self, command: str, raw: bool = False) -> None:
        self._check_connected("command_blind")
        raise MethodNotImplementedError(f"command_blind - Command:{command}, Raw: {raw}.")

    def command_bool(self, command: str, raw: bool = False) -> bool:
        self._check_connected("command_bool")
        raise MethodNotImplementedError(f"command_bool - Command:{command}, Raw: {raw}.")

    def command_string(self, command: str, raw: bool = False) -> str:
        self._check_connected("command_string")
        raise MethodNotImplementedError(f"command_string - Command:{command}, Raw: {raw}.")

    # -- Cover --------------------------------------------------------------

    @property
    def cover_state(self) -> CoverState:
        """Query the dust cover; unrecognised firmware states map to UNKNOWN."""
        identifier = "cover_state"
        self._check_connected(identifier)
        response = self._engine.execute(CMD_COVER_GET_STATE, identifier=identifier)
        logger.debug("%s: cover is %s", identifier, response)
        state = COVER_STATES.get(response)
        if state is None:
            logger.warning("%s: %r: unknown cover status", identifier, response)
            return CoverState.UNKNOWN
        return state

    def open_cover(self) -> None:
        """Start opening the cover.  Returns once the firmware acknowledged."""
        self._expect_ok("open_cover", CMD_COVER_OPEN)

    def close_cover(self) -> None:
        """Start closing the cover.  Returns once the firmware acknowledged."""
        self._expect_ok("close_cover", CMD_COVER_CLOSE)

    def halt_cover(self) -> None:
        """The firmware cannot stop the cover mid-travel."""
        identifier = "halt_cover"
        self._check_connected(identifier)
        logger.info("%s: not implemented", identifier)
        raise MethodNotImplementedError(identifier)

    def _expect_ok(self, identifier: str, command: str) -> None:
        self._check_connected(identifier)
        response = self._engine.execute(command, identifier=identifier)
        if response != GENERIC_RESULT_OK:
            raise _invalid_response(identifier, command, response)

    # -- Calibrator ---------------------------------------------------------

    @property
    def calibrator_state(self) -> CalibratorState:
        """Always READY: the FFFPV1 light panel cannot be absent."""
        self._check_connected("calibrator_state")
        return CalibratorState.READY

    @property
    def max_brightness(self) -> int:
        return MAX_BRIGHTNESS

    @property
    def brightness(self) -> int:
        """Current light level, ``0``–``1023``."""
        identifier = "brightness"
        self._check_connected(identifier)
        response = self._engine.execute(CMD_BRIGHTNESS_GET, identifier=identifier)
        if not _LEVEL_RE.fullmatch(response):
            raise _invalid_response(identifier, CMD_BRIGHTNESS_GET, response)
        level = int(response)
        if level < MIN_BRIGHTNESS or level > MAX_BRIGHTNESS:
            raise _invalid_response(identifier, CMD_BRIGHTNESS_GET, response)
        return level

    def calibrator_on(self, level: int) -> None:
        """Light the panel at *level* (``0``–``1023``).

        Raises:
            ValidationError: If *level* is out of range.  Nothing is sent.
            DeviceStateError: If the firmware does not echo *level* back.
        """
        identifier = "calibrator_on"
        try:
            _validate_brightness(level)
        except ValidationError as exc:
            logger.error("%s: %s", identifier, exc)
            raise
        self._check_connected(identifier)

        expected = str(level)
        response = self._engine.execute(CMD_BRIGHTNESS_SET, expected, identifier=identifier)
        if response != expected:
            raise _invalid_response(identifier, CMD_BRIGHTNESS_SET, response)
        logger.debug("%s: on at %s", identifier, response)

    def calibrator_off(self) -> None:
        """Switch the panel off."""
        identifier = "calibrator_off"
        self._check_connected(identifier)
        response = self._engine.execute(CMD_BRIGHTNESS_RESET, identifier=identifier)
        if response.strip() != BRIGHTNESS_RESET_RESULT:
            raise _invalid_response(identifier, CMD_BRIGHTNESS_RESET, response)
        logger.debug("%s: off", identifier)


# ---------------------------------------------------------------------------
# Convenience factory
# ---------------------------------------------------------------------------


def get_controller(port: str = DEFAULT_PORT, link: Optional[LinkArbiter] = None) -> FlatPanel:
    """Return a panel instance (use as a context manager).

    Pass the process's shared *link* when more than one caller talks to the
    panel; a private :class:`LinkArbiter` is created otherwise.

    Example::

        with get_controller('/dev/ttyACM0') as panel:
            panel.calibrator_on(300)
    """
    return FlatPanel(link if link is not None else LinkArbiter(), port)
