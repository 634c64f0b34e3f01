"""Console panel — text/AT command input with history and quick commands."""

from typing import Callable, Dict

from nicegui import ui

from hm10_gui.config import HM10_COMMON_COMMANDS
from hm10_gui.services.command_history import CommandHistory


class ConsolePanel:
    """Command input in the centre column.

    Up/Down in the input field walks the command history like a shell;
    Escape clears the field and returns to the newest entry.

    Args:
        put_command: Callable to enqueue a command dict for the worker.
        history:     Shared CommandHistory (one per browser tab).
    """

    def __init__(
        self,
        put_command: Callable[[Dict], None],
        history: CommandHistory,
    ) -> None:
        self._put_command = put_command
        self._history = history
        self._input = None
        self._send_button = None
        self._quick_buttons = []

    def render(self) -> None:
        with ui.card().classes('w-full'):
            ui.label('⌨️ Console').classes('font-bold text-gray-600')
            with ui.row().classes('w-full items-center gap-2'):
                self._input = ui.input(
                    placeholder='Text or AT command...'
                ).classes('flex-grow font-mono')
                self._input.on('keydown.enter', self._send)
                self._input.on('keydown.up', self._history_previous)
                self._input.on('keydown.down', self._history_next)
                self._input.on('keydown.escape', self._clear_input)
                self._send_button = ui.button(
                    'Send', on_click=self._send
                ).classes('bg-blue-500 text-white')

            with ui.row().classes('w-full gap-1'):
                for command in HM10_COMMON_COMMANDS:
                    button = ui.button(
                        command,
                        on_click=lambda _, c=command: self._send_text(c),
                    ).props('dense flat no-caps').classes('text-xs font-mono')
                    self._quick_buttons.append(button)

    def update(self, data: Dict) -> None:
        """Enable sending only when a write channel is bound."""
        if not self._send_button:
            return
        ready = data['has_write']
        self._send_button.set_enabled(ready)
        for button in self._quick_buttons:
            button.set_enabled(ready)

    def _send(self) -> None:
        text = self._input.value or ''
        if self._send_text(text):
            self._input.value = ''

    def _send_text(self, text: str) -> bool:
        if not text:
            return False
        self._history.add(text)
        self._put_command({'action': 'send', 'text': text})
        return True

    def _history_previous(self) -> None:
        command = self._history.previous()
        if command is not None:
            self._input.value = command

    def _history_next(self) -> None:
        self._input.value = self._history.next()

    def _clear_input(self) -> None:
        self._input.value = ''
        self._history.reset_index()
