"""Shared runtime constants for the FFFPV1 flat panel.

This is the canonical source of truth for protocol tokens, brightness
limits and serial defaults.  Other modules should import from here rather
than defining their own copies.
"""

# ---------------------------------------------------------------------------
# Wire protocol
# ---------------------------------------------------------------------------

MESSAGE_TERMINATOR = "\n"
TYPE_SEPARATOR = ":"
ARGS_SEPARATOR = "@"

COMMAND_TYPE = "COMMAND"
RESULT_TYPE = "RESULT"
ERROR_TYPE = "ERROR"

CMD_PING = "PING"
CMD_COVER_GET_STATE = "COVER_GET_STATE"
CMD_COVER_OPEN = "COVER_OPEN"
CMD_COVER_CLOSE = "COVER_CLOSE"
CMD_BRIGHTNESS_GET = "BRIGHTNESS_GET"
CMD_BRIGHTNESS_SET = "BRIGHTNESS_SET"
CMD_BRIGHTNESS_RESET = "BRIGHTNESS_RESET"

PING_RESULT_PONG = "PONG"
GENERIC_RESULT_OK = "OK"
BRIGHTNESS_RESET_RESULT = "0"

# ---------------------------------------------------------------------------
# Validation limits
# ---------------------------------------------------------------------------

MIN_BRIGHTNESS = 0
MAX_BRIGHTNESS = 1023

# ---------------------------------------------------------------------------
# Serial / runtime defaults
# ---------------------------------------------------------------------------

DEFAULT_PORT = "/dev/ttyACM0"
DEFAULT_BAUD = 57600
DEFAULT_TIMEOUT = None  # block until the firmware answers
DEFAULT_TRACE = True

# ---------------------------------------------------------------------------
# Driver identity
# ---------------------------------------------------------------------------

DRIVER_NAME = "Le Telescope FFFPV1 flat panel driver"
DRIVER_DESCRIPTION = "Le Telescope FFFPV1 cover calibrator"
INTERFACE_VERSION = 1
