"""Device list panel — scan controls and discovered peripherals, click to connect."""

from typing import Callable, Dict, List

from nicegui import ui

import hm10_gui.config as config
from hm10_gui.core.models import PeripheralHandle


class DeviceListPanel:
    """Scan buttons and the discovery list in the left column.

    Args:
        put_command: Callable to enqueue a command dict for the worker.
    """

    def __init__(self, put_command: Callable[[Dict], None]) -> None:
        self._put_command = put_command
        self._container = None
        self._scan_button = None
        self._hm10_checkbox = None
        self._scan_label = None

    def render(self) -> None:
        with ui.card().classes('w-full'):
            ui.label('📶 Devices').classes('font-bold text-gray-600')
            with ui.row().classes('w-full items-center gap-2'):
                self._scan_button = ui.button('🔍 Scan', on_click=self._toggle_scan)
                self._hm10_checkbox = ui.checkbox('HM-10 only', value=config.SCAN_HM10_ONLY)
            self._scan_label = ui.label('').classes('text-xs text-gray-500')
            self._container = ui.column().classes(
                'w-full gap-0 max-h-96 overflow-y-auto'
            )

    def update_scan_state(self, data: Dict) -> None:
        """Sync the scan button with the radio and scan flags."""
        if not self._scan_button:
            return
        scanning = data['scanning']
        self._scan_button.text = '⏹ Stop' if scanning else '🔍 Scan'
        self._scan_button.set_enabled(data['powered_on'] or scanning)
        self._scan_label.text = 'Scanning...' if scanning else ''

    def update(self, data: Dict) -> None:
        if not self._container:
            return

        self.update_scan_state(data)
        devices: List[PeripheralHandle] = data['devices']
        connected = data['peripheral']

        self._container.clear()
        with self._container:
            if not devices:
                ui.label('No devices found').classes('text-xs text-gray-400')
                return
            for device in devices:
                is_connected = (
                    connected is not None
                    and connected.identifier == device.identifier
                )
                icon = '🟢' if is_connected else '📟'
                row = ui.row().classes(
                    'w-full items-center gap-2 cursor-pointer '
                    'hover:bg-gray-100 rounded px-1'
                )
                with row:
                    ui.label(icon)
                    with ui.column().classes('gap-0'):
                        ui.label(device.display_name).classes('text-sm')
                        ui.label(device.identifier).classes(
                            'text-xs text-gray-400 font-mono'
                        )
                row.on('click', lambda _, d=device: self._connect(d))

    def _toggle_scan(self) -> None:
        if self._scan_button.text.startswith('⏹'):
            self._put_command({'action': 'stop_scan'})
        else:
            self._put_command({
                'action': 'start_scan',
                'hm10_only': bool(self._hm10_checkbox.value),
            })

    def _connect(self, device: PeripheralHandle) -> None:
        self._put_command({
            'action': 'connect',
            'identifier': device.identifier,
        })
