"""Le Telescope FFFPV1 Flat Panel Python Interface"""

from .config import DriverConfig, apply_trace, load_config, save_config
from .constants import DEFAULT_PORT, MAX_BRIGHTNESS, MIN_BRIGHTNESS
from .controller import FlatPanel, get_controller
from .exceptions import (
    ActionNotImplementedError,
    DeviceStateError,
    FlatPanelError,
    HandshakeError,
    MethodNotImplementedError,
    NotConnectedError,
    NotImplementedFeatureError,
    ProtocolError,
    TimeoutError,
    TransportError,
    ValidationError,
)
from .link import LinkArbiter
from .protocol import CalibratorState, CoverState

__all__ = [
    "ActionNotImplementedError",
    "CalibratorState",
    "CoverState",
    "DEFAULT_PORT",
    "DeviceStateError",
    "DriverConfig",
    "FlatPanel",
    "FlatPanelError",
    "HandshakeError",
    "LinkArbiter",
    "MAX_BRIGHTNESS",
    "MIN_BRIGHTNESS",
    "MethodNotImplementedError",
    "NotConnectedError",
    "NotImplementedFeatureError",
    "ProtocolError",
    "TimeoutError",
    "TransportError",
    "ValidationError",
    "apply_trace",
    "get_controller",
    "load_config",
    "save_config",
]
__version__ = "0.1.0"
