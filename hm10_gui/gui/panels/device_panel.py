"""Device panel — connection state, bound channels and HM-10 module info."""

from typing import Callable, Dict

from nicegui import ui

from hm10_gui.core.models import ConnectionState, WriteMode
from hm10_gui.gui.constants import POWER_ICONS, STATE_ICONS, STATE_LABELS


class DevicePanel:
    """Displays the active connection in the left column.

    Args:
        put_command: Callable to enqueue a command dict for the worker.
    """

    def __init__(self, put_command: Callable[[Dict], None]) -> None:
        self._put_command = put_command
        self._label = None
        self._info_label = None
        self._disconnect_button = None
        self._query_button = None

    def render(self) -> None:
        with ui.card().classes('w-full'):
            ui.label('📡 Connection').classes('font-bold text-gray-600')
            self._label = ui.label('Waiting for radio...').classes(
                'text-sm whitespace-pre-line'
            )
            self._info_label = ui.label('').classes(
                'text-xs whitespace-pre-line text-gray-600'
            )
            with ui.row().classes('gap-2'):
                self._disconnect_button = ui.button(
                    '⏏️ Disconnect', on_click=self._disconnect,
                )
                self._query_button = ui.button(
                    'ℹ️ Query info', on_click=self._query_info,
                )

    def update(self, data: Dict) -> None:
        if not self._label:
            return

        state: ConnectionState = data['connection_state']
        peripheral = data['peripheral']
        binding = data['binding']

        lines = [
            f"{POWER_ICONS[data['power_state']]} Radio: {data['power_state'].value}",
            f"{STATE_ICONS[state]} {STATE_LABELS[state]}",
        ]
        if peripheral is not None:
            lines.append(f"📟 {peripheral.display_name}")
            lines.append(f"🆔 {peripheral.identifier}")
        if data['has_write']:
            mode = (
                'with response'
                if data['write_mode'] is WriteMode.WITH_RESPONSE
                else 'without response'
            )
            lines.append(f"✏️ Write: {binding.write.uuid[:8]} ({mode})")
        if data['has_notify']:
            lines.append(f"🔔 Notify: {binding.notify.uuid[:8]}")
        if data['has_hm10_characteristics']:
            lines.append("🏷️ HM-10 module (FFE1)")
        elif data['is_hm10']:
            lines.append("🏷️ HM-10 compatible")
        self._label.text = "\n".join(lines)

        info = data['device_info']
        info_lines = []
        if info.name:
            info_lines.append(f"Name: {info.name}")
        if info.role:
            info_lines.append(f"Role: {info.role}")
        if info.version:
            info_lines.append(f"Version: {info.version}")
        if info.baud_rate:
            info_lines.append(f"Baud: {info.baud_rate}")
        if info.mac_address:
            info_lines.append(f"MAC: {info.mac_address}")
        self._info_label.text = "\n".join(info_lines)

        self._disconnect_button.set_enabled(not state.accepts_connect)
        self._query_button.set_enabled(state is ConnectionState.READY)

    def _disconnect(self) -> None:
        self._put_command({'action': 'disconnect'})

    def _query_info(self) -> None:
        self._put_command({'action': 'query_device_info'})
