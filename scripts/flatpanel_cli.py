#!/usr/bin/env python3
"""
Flat Panel CLI — Interactive harness for the Le Telescope FFFPV1 flat panel.

Reads the port and trace flag from a YAML config file, connects, and offers
a menu for the cover and the light panel.  ``--setup`` edits the config and
writes it back once the new values are confirmed.

Usage:
    python scripts/flatpanel_cli.py
    python scripts/flatpanel_cli.py --port /dev/ttyACM1
    python scripts/flatpanel_cli.py --config path/to/flatpanel.yaml --setup
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from contextlib import suppress
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from fffpv1_flatpanel import (
    CoverState,
    DriverConfig,
    FlatPanel,
    FlatPanelError,
    LinkArbiter,
    apply_trace,
    load_config,
    save_config,
)

DEFAULT_CONFIG = Path(__file__).resolve().parent.parent / "config" / "flatpanel.yaml"

COVER_POLL_S = 0.5
COVER_WAIT_S = 30.0


# ═══════════════════════════════════════
#  Terminal helpers
# ═══════════════════════════════════════


class C:
    """ANSI color codes (no-op on non-TTY)."""

    if sys.stdout.isatty():
        BOLD = "\033[1m"
        DIM = "\033[2m"
        GREEN = "\033[32m"
        YELLOW = "\033[33m"
        RED = "\033[31m"
        CYAN = "\033[36m"
        RESET = "\033[0m"
    else:
        BOLD = DIM = GREEN = YELLOW = RED = CYAN = RESET = ""


def banner(text: str) -> None:
    print(f"\n{C.BOLD}{'═' * 60}")
    print(f"  {text}")
    print(f"{'═' * 60}{C.RESET}")


def info(text: str) -> None:
    print(f"  {C.GREEN}✓{C.RESET} {text}")


def warn(text: str) -> None:
    print(f"  {C.YELLOW}⚠{C.RESET} {text}")


def error(text: str) -> None:
    print(f"  {C.RED}✗{C.RESET} {text}")


def prompt(text: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    try:
        val = input(f"  {text}{suffix}: ").strip()
    except EOFError:
        return default
    return val if val else default


def confirm(text: str) -> bool:
    return prompt(f"{text} (y/n)", "n").lower().startswith("y")


# ═══════════════════════════════════════
#  Setup
# ═══════════════════════════════════════


def run_setup(config_path: Path, current: DriverConfig) -> DriverConfig:
    """Ask for new settings and persist them only if the user confirms."""
    banner("Flat Panel Setup")
    port = prompt("Serial port", current.port)
    trace = confirm(f"Enable trace logging? (currently {'on' if current.trace else 'off'})")
    new = DriverConfig(port=port, trace=trace)

    print(f"\n  Port:  {new.port}")
    print(f"  Trace: {'on' if new.trace else 'off'}")
    if not confirm("Save these settings?"):
        warn("Setup cancelled, nothing written.")
        return current

    save_config(config_path, new)
    info(f"Settings written to {config_path}")
    return new


# ═══════════════════════════════════════
#  Menu actions
# ═══════════════════════════════════════


def do_status(panel: FlatPanel) -> None:
    """Print identity, cover position and light level."""
    banner("Status")
    print(f"  Driver:     {panel.driver_info}")
    print(f"  Port:       {panel.port}")

    try:
        state = panel.cover_state
        colour = C.GREEN if state is CoverState.OPEN else ""
        print(f"  Cover:      {colour}{state.name}{C.RESET}")
    except FlatPanelError as exc:
        error(f"Cover query failed: {exc}")

    try:
        level = panel.brightness
        status = f"{C.GREEN}ON{C.RESET}" if level else f"{C.DIM}OFF{C.RESET}"
        print(f"  Light:      {status} ({level}/{panel.max_brightness})")
    except FlatPanelError as exc:
        error(f"Brightness query failed: {exc}")


def _move_cover(panel: FlatPanel, opening: bool) -> None:
    target = CoverState.OPEN if opening else CoverState.CLOSED
    try:
        if opening:
            panel.open_cover()
        else:
            panel.close_cover()
        info(f"Cover {'opening' if opening else 'closing'}…")

        deadline = time.monotonic() + COVER_WAIT_S
        state = panel.cover_state
        while state is CoverState.MOVING and time.monotonic() < deadline:
            time.sleep(COVER_POLL_S)
            state = panel.cover_state
    except FlatPanelError as exc:
        error(f"Failed: {exc}")
        return

    if state is target:
        info(f"Cover {state.name}")
    else:
        warn(f"Cover reports {state.name}")


def do_open_cover(panel: FlatPanel) -> None:
    _move_cover(panel, opening=True)


def do_close_cover(panel: FlatPanel) -> None:
    _move_cover(panel, opening=False)


def do_light_on(panel: FlatPanel) -> None:
    """Light the panel at a chosen level."""
    banner("Light On")
    raw = prompt(f"Brightness (0-{panel.max_brightness})", str(panel.max_brightness // 4))
    try:
        level = int(raw)
    except ValueError:
        error(f"Invalid number: {raw}")
        return
    try:
        panel.calibrator_on(level)
        info(f"Light ON at {level}")
    except FlatPanelError as exc:
        error(f"Failed: {exc}")


def do_light_off(panel: FlatPanel) -> None:
    try:
        panel.calibrator_off()
        info("Light OFF")
    except FlatPanelError as exc:
        error(f"Failed: {exc}")


# ═══════════════════════════════════════
#  Main loop
# ═══════════════════════════════════════

MENU = [
    ("1", "Status", "Cover position and light level"),
    ("2", "Open Cover", "Open the dust cover"),
    ("3", "Close Cover", "Close the dust cover"),
    ("4", "Light On", "Switch the panel on at a brightness"),
    ("5", "Light Off", "Switch the panel off"),
    ("q", "Quit", "Turn the light off and exit"),
]

ACTIONS = {
    "1": do_status,
    "2": do_open_cover,
    "3": do_close_cover,
    "4": do_light_on,
    "5": do_light_off,
}


def main_menu() -> None:
    line = "─" * 50
    print(f"\n{C.BOLD}  Flat Panel Menu{C.RESET}")
    print(f"  {C.DIM}{line}{C.RESET}")
    for key, label, desc in MENU:
        print(f"    {C.CYAN}{key}{C.RESET})  {label:16s} {C.DIM}— {desc}{C.RESET}")
    print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Interactive CLI for the FFFPV1 flat panel")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Path to YAML config file (default: {DEFAULT_CONFIG.name})",
    )
    parser.add_argument("--port", help="Serial port, overrides the config file")
    parser.add_argument(
        "--setup",
        action="store_true",
        help="Edit and save the configuration before connecting",
    )
    return parser


def main() -> int:
    args = build_parser().parse_args()

    try:
        config = load_config(args.config)
    except FileNotFoundError:
        config = DriverConfig()
        warn(f"No config at {args.config}, using defaults")
    except FlatPanelError as exc:
        print(f"{C.RED}✗{C.RESET} Config error: {exc}", file=sys.stderr)
        return 1

    if args.setup:
        config = run_setup(args.config, config)

    logging.basicConfig(format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    apply_trace(config)

    port = args.port or config.port
    banner("FFFPV1 Flat Panel")

    panel = FlatPanel(LinkArbiter(), port)
    try:
        panel.connect()
        info(f"Connected to {port}")
    except FlatPanelError as exc:
        error(f"Cannot connect: {exc}")
        return 1

    try:
        while True:
            main_menu()
            choice = prompt("Choice", "q").lower()

            if choice == "q":
                break

            action = ACTIONS.get(choice)
            if action:
                action(panel)
            else:
                error(f"Unknown option: {choice}")

    except KeyboardInterrupt:
        print(f"\n\n  {C.YELLOW}Interrupted!{C.RESET}")

    finally:
        # Safety: never leave the panel lit
        print()
        with suppress(FlatPanelError):
            panel.calibrator_off()
        panel.disconnect()
        info("Disconnected. Goodbye!")

    return 0


if __name__ == "__main__":
    sys.exit(main())
