"""
Main dashboard page for HM-10 GUI.

Thin orchestrator that owns the layout and the 500 ms update timer.
All visual content is delegated to individual panel classes in
:mod:`hm10_gui.gui.panels`.
"""

import logging

from nicegui import ui

from hm10_gui.core.protocols import SharedDataReader
from hm10_gui.gui.panels import (
    ConsolePanel,
    DeviceListPanel,
    DevicePanel,
    MessagesPanel,
)
from hm10_gui.services.command_history import CommandHistory


# Suppress the harmless "Client has been deleted" warning that NiceGUI
# emits when a browser tab is refreshed while a ui.timer is active.
class _DeletedClientFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return 'Client has been deleted' not in record.getMessage()

logging.getLogger('nicegui').addFilter(_DeletedClientFilter())


class DashboardPage:
    """Main dashboard rendered at ``/``.

    Args:
        shared: SharedDataReader for data access and command dispatch.
    """

    def __init__(self, shared: SharedDataReader) -> None:
        self._shared = shared

        # Panels (created fresh on each render)
        self._devices: DeviceListPanel | None = None
        self._device: DevicePanel | None = None
        self._console: ConsolePanel | None = None
        self._messages: MessagesPanel | None = None

        # Header status label
        self._status_label = None

        # Local first-render flag
        self._initialized: bool = False

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def render(self) -> None:
        """Build the complete dashboard layout and start the timer."""
        self._initialized = False

        put_cmd = self._shared.put_command
        self._devices = DeviceListPanel(put_cmd)
        self._device = DevicePanel(put_cmd)
        self._console = ConsolePanel(put_cmd, CommandHistory())
        self._messages = MessagesPanel(self._shared.clear_messages)

        ui.dark_mode(False)

        # Header
        with ui.header().classes('bg-blue-600 text-white'):
            ui.label('📟 HM-10 Terminal').classes('text-xl font-bold')
            ui.space()
            self._status_label = ui.label('Starting...').classes('text-sm')

        # Two-column layout
        with ui.row().classes('w-full h-full gap-2 p-2'):
            # Left column
            with ui.column().classes('w-80 gap-2'):
                self._device.render()
                self._devices.render()

            # Main column
            with ui.column().classes('flex-grow gap-2'):
                self._messages.render()
                self._console.render()

        # Start update timer
        ui.timer(0.5, self._update_ui)

    # ------------------------------------------------------------------
    # Timer-driven UI update
    # ------------------------------------------------------------------

    def _update_ui(self) -> None:
        try:
            if not self._status_label:
                return

            # Snapshot and flag reset in one lock acquisition, so no
            # worker update slips in between.
            data = self._shared.get_snapshot_and_clear_flags()
            is_first = not self._initialized

            # Mark initialised immediately so a crashing panel update
            # does not retry the full first render every 500 ms.
            if is_first:
                self._initialized = True

            # Always update status
            self._status_label.text = data['status']

            # Connection, binding and module info
            if data['connection_updated'] or is_first:
                self._device.update(data)
                self._console.update(data)

            # Device list (scan button follows radio/scan state every tick)
            if data['devices_updated'] or data['connection_updated'] or is_first:
                self._devices.update(data)
            else:
                self._devices.update_scan_state(data)

            # Message log
            if data['messages_updated'] or is_first:
                self._messages.update(data)

        except Exception as e:
            err = str(e).lower()
            if "deleted" not in err and "client" not in err:
                import traceback
                print(f"GUI update error: {e}")
                traceback.print_exc()
