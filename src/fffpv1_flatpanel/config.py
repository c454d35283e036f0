"""
Driver configuration: serial port and trace flag, persisted as YAML.

The configuration is read once at startup and written back only when the
user confirms the setup prompt::

    from fffpv1_flatpanel.config import apply_trace, load_config

    config = load_config("config/flatpanel.yaml")
    apply_trace(config)
    with get_controller(config.port) as panel:
        ...
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path

import yaml

from .constants import DEFAULT_PORT, DEFAULT_TRACE
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

_PACKAGE_LOGGER = __name__.rpartition(".")[0]


@dataclass(frozen=True)
class DriverConfig:
    """Validated driver configuration."""

    port: str = DEFAULT_PORT
    trace: bool = DEFAULT_TRACE


# ---------------------------------------------------------------------------
# Loading & saving
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> DriverConfig:
    """Load and validate a driver configuration from a YAML file.

    Args:
        path: Path to the YAML config file.

    Returns:
        A validated :class:`DriverConfig`.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValidationError: If the config is malformed or contains invalid values.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValidationError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    port = raw.get("port")
    if not isinstance(port, str) or not port.strip():
        raise ValidationError("Config must specify a non-empty 'port' string")

    trace = raw.get("trace", DEFAULT_TRACE)
    if not isinstance(trace, bool):
        raise ValidationError(f"'trace' must be a boolean, got {type(trace).__name__}")

    return DriverConfig(port=port.strip(), trace=trace)


def save_config(path: str | Path, config: DriverConfig) -> None:
    """Write *config* to *path*, creating parent directories as needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(asdict(config), f, default_flow_style=False, sort_keys=False)
    logger.info("Configuration written to %s", path)


# ---------------------------------------------------------------------------
# Tracing
# ---------------------------------------------------------------------------


def apply_trace(config: DriverConfig) -> None:
    """Set the package logger to DEBUG when tracing is on, INFO otherwise."""
    level = logging.DEBUG if config.trace else logging.INFO
    logging.getLogger(_PACKAGE_LOGGER).setLevel(level)
