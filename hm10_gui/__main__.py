#!/usr/bin/env python3
"""
HM-10 GUI — BLE Terminal
========================

Entry point.  Parses arguments, wires up the components, registers
the NiceGUI page and starts the server.

Usage:
    python -m hm10_gui
    python -m hm10_gui --debug-on
    python -m hm10_gui --port=9090
    python -m hm10_gui --hm10-only
    python -m hm10_gui --adapter=hci1
    hm10-gui --debug-on
"""

import sys

from nicegui import ui

# Allow overriding DEBUG before anything imports it
import hm10_gui.config as config

from hm10_gui.ble.worker import BLEWorker
from hm10_gui.core.shared_data import SharedData
from hm10_gui.gui.dashboard import DashboardPage


# Global instances (needed by NiceGUI page decorators)
_shared = None
_dashboard = None


@ui.page('/')
def _page_dashboard():
    """NiceGUI page handler — main dashboard."""
    if _dashboard:
        _dashboard.render()


def _usage() -> None:
    print("HM-10 GUI - BLE Terminal")
    print("=" * 40)
    print("Usage: python -m hm10_gui [--debug-on] [--port=PORT] [--hm10-only] [--adapter=NAME]")
    print()
    print("Options:")
    print("  --debug-on        Enable verbose debug logging")
    print(f"  --port=PORT       Web server port (default: {config.PORT})")
    print("  --hm10-only       Scan for HM-10 modules (service FFE0) by default")
    print(f"  --adapter=NAME    BlueZ adapter (default: {config.BLUEZ_ADAPTER})")
    print("  --help            Show this help")


def main():
    """
    Main entry point.

    Parses CLI arguments, initialises all components and starts the
    NiceGUI server.
    """
    global _shared, _dashboard

    flags = sys.argv[1:]
    unknown = [
        f for f in flags
        if f not in ('--debug-on', '--hm10-only', '--help')
        and not f.startswith(('--port=', '--adapter='))
    ]
    if '--help' in flags or unknown:
        if unknown:
            print(f"ERROR: Unknown option(s): {' '.join(unknown)}")
        _usage()
        sys.exit(0 if not unknown else 1)

    # Apply --debug-on flag
    if '--debug-on' in flags:
        config.DEBUG = True

    # Apply --hm10-only flag
    if '--hm10-only' in flags:
        config.SCAN_HM10_ONLY = True

    # Apply --port flag
    port = config.PORT
    for flag in flags:
        if flag.startswith('--port='):
            try:
                port = int(flag.split('=', 1)[1])
            except ValueError:
                print(f"ERROR: Invalid port number: {flag}")
                sys.exit(1)

    # Apply --adapter flag
    adapter = config.BLUEZ_ADAPTER
    for flag in flags:
        if flag.startswith('--adapter='):
            adapter = flag.split('=', 1)[1]

    # Startup banner
    print("=" * 50)
    print(f"HM-10 GUI - BLE Terminal v{config.VERSION}")
    print("=" * 50)
    print(f"Adapter:    {adapter}")
    print(f"Port:       {port}")
    print(f"HM-10 only: {'ON' if config.SCAN_HM10_ONLY else 'OFF'}")
    print(f"Debug mode: {'ON' if config.DEBUG else 'OFF'}")
    if config.DEBUG:
        print(f"Log file:   {config.LOG_FILE}")
    print("=" * 50)

    # Assemble components
    _shared = SharedData()
    _dashboard = DashboardPage(_shared)

    # Start BLE worker in background thread
    worker = BLEWorker(_shared, adapter=adapter)
    worker.start()

    # Start NiceGUI server (blocks)
    ui.run(
        show=False, host='0.0.0.0', title='HM-10 Terminal',
        port=port, reload=False,
    )


if __name__ == "__main__":
    main()
