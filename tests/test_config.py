"""
Tests for the driver configuration module.

Covers:
* Config loading and validation (valid YAML, missing fields, bad values)
* Saving and reloading
* Trace flag → package log level
"""

from __future__ import annotations

import logging
import textwrap
from pathlib import Path

import pytest

from fffpv1_flatpanel import DriverConfig, ValidationError, apply_trace, load_config, save_config

# ══════════════════════════════════════════════════════════════════════════
#  Fixtures
# ══════════════════════════════════════════════════════════════════════════


def write_config(path: Path, content: str) -> Path:
    """Write a YAML config file and return its path."""
    config_file = path / "flatpanel.yaml"
    config_file.write_text(textwrap.dedent(content))
    return config_file


@pytest.fixture()
def restore_log_level():
    pkg = logging.getLogger("fffpv1_flatpanel")
    level = pkg.level
    yield pkg
    pkg.setLevel(level)


# ══════════════════════════════════════════════════════════════════════════
#  Loading
# ══════════════════════════════════════════════════════════════════════════


class TestLoadConfigValid:
    def test_full(self, tmp_path):
        path = write_config(
            tmp_path,
            """\
            port: COM4
            trace: false
            """,
        )
        assert load_config(path) == DriverConfig(port="COM4", trace=False)

    def test_trace_defaults_true(self, tmp_path):
        path = write_config(tmp_path, "port: /dev/ttyACM1\n")
        assert load_config(path).trace is True

    def test_port_whitespace_trimmed(self, tmp_path):
        path = write_config(tmp_path, "port: '  /dev/ttyACM1 '\n")
        assert load_config(path).port == "/dev/ttyACM1"

    def test_defaults(self):
        config = DriverConfig()
        assert config.port == "/dev/ttyACM0"
        assert config.trace is True


class TestLoadConfigInvalid:
    def test_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.yaml")

    def test_not_a_mapping(self, tmp_path):
        path = write_config(tmp_path, "- just\n- a\n- list\n")
        with pytest.raises(ValidationError, match="mapping"):
            load_config(path)

    def test_empty_file(self, tmp_path):
        path = write_config(tmp_path, "")
        with pytest.raises(ValidationError, match="mapping"):
            load_config(path)

    def test_missing_port(self, tmp_path):
        path = write_config(tmp_path, "trace: true\n")
        with pytest.raises(ValidationError, match="port"):
            load_config(path)

    def test_blank_port(self, tmp_path):
        path = write_config(tmp_path, "port: '   '\n")
        with pytest.raises(ValidationError, match="port"):
            load_config(path)

    def test_numeric_port(self, tmp_path):
        path = write_config(tmp_path, "port: 4\n")
        with pytest.raises(ValidationError, match="port"):
            load_config(path)

    def test_trace_not_bool(self, tmp_path):
        path = write_config(tmp_path, 'port: COM1\ntrace: "yes"\n')
        with pytest.raises(ValidationError, match="trace.*bool"):
            load_config(path)


# ══════════════════════════════════════════════════════════════════════════
#  Saving
# ══════════════════════════════════════════════════════════════════════════


class TestSaveConfig:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "flatpanel.yaml"
        config = DriverConfig(port="COM7", trace=False)
        save_config(path, config)
        assert load_config(path) == config

    def test_overwrites(self, tmp_path):
        path = write_config(tmp_path, "port: COM1\n")
        save_config(path, DriverConfig(port="COM2", trace=True))
        assert load_config(path).port == "COM2"


# ══════════════════════════════════════════════════════════════════════════
#  Tracing
# ══════════════════════════════════════════════════════════════════════════


class TestApplyTrace:
    def test_trace_on(self, restore_log_level):
        apply_trace(DriverConfig(trace=True))
        assert restore_log_level.level == logging.DEBUG

    def test_trace_off(self, restore_log_level):
        apply_trace(DriverConfig(trace=False))
        assert restore_log_level.level == logging.INFO
