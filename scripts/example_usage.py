#!/usr/bin/env python3
"""
Example usage of the FFFPV1 flat panel module

This script demonstrates:
- Sharing one link between two callers
- Reading the cover and light state
- Taking a flat: open cover, light on, light off, close cover
- Proper cleanup
"""

import sys
import time

# Add src to path so we can import fffpv1_flatpanel
sys.path.insert(0, "src")

from fffpv1_flatpanel import CoverState, FlatPanel, LinkArbiter

PORT = "/dev/ttyACM0"


def wait_for_cover(panel, target, timeout=30.0):
    deadline = time.monotonic() + timeout
    while panel.cover_state is CoverState.MOVING and time.monotonic() < deadline:
        time.sleep(0.5)
    return panel.cover_state is target


def main():
    """Run an example flat sequence"""

    print("FFFPV1 Flat Panel - Example Usage")
    print("=" * 60)

    # One link per process; every FlatPanel shares it
    link = LinkArbiter()

    with FlatPanel(link, PORT) as panel:
        monitor = FlatPanel(link, PORT)
        print(f"\nConnected: {panel.connected} (monitor sees {monitor.connected})")
        print(f"  Driver:  {panel.driver_info}")
        print(f"  Cover:   {monitor.cover_state.name}")
        print(f"  Light:   {monitor.brightness}/{panel.max_brightness}")

        # Example 1: Open the cover
        print("\n" + "=" * 60)
        print("Example 1: Open the cover")
        panel.open_cover()
        if wait_for_cover(panel, CoverState.OPEN):
            print("✓ Cover open")

        # Example 2: Light the panel at half brightness
        print("\n" + "=" * 60)
        print("Example 2: Light at half brightness")
        panel.calibrator_on(panel.max_brightness // 2)
        print(f"✓ Light ON at {monitor.brightness}")

        time.sleep(2)

        # Example 3: Light off, close the cover
        print("\n" + "=" * 60)
        print("Example 3: Light off and close")
        panel.calibrator_off()
        panel.close_cover()
        if wait_for_cover(panel, CoverState.CLOSED):
            print("✓ Cover closed")

        print("\n" + "=" * 60)
        print("Example complete!")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)
