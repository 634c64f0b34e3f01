"""Messages panel — traffic log with classified HM-10 responses."""

from typing import Callable, Dict, List, Optional

from nicegui import ui

from hm10_gui.core.models import Direction, MessageLogEntry
from hm10_gui.services.response_classifier import classify


class MessagesPanel:
    """Displays the message log, newest at the bottom.

    Received lines are run through the response classifier so AT
    replies stand out from plain serial data.

    Args:
        clear_messages: Callable that empties the shared message log.
    """

    def __init__(self, clear_messages: Callable[[], None]) -> None:
        self._clear_messages = clear_messages
        self._container = None
        self._raw_checkbox = None
        self._last_messages: Optional[List[MessageLogEntry]] = None

    def render(self) -> None:
        with ui.card().classes('w-full flex-grow'):
            with ui.row().classes('w-full items-center gap-2'):
                ui.label('💬 Messages').classes('font-bold text-gray-600')
                ui.space()
                self._raw_checkbox = ui.checkbox(
                    'Raw', value=False, on_change=lambda _: self._rebuild(),
                )
                ui.button('🗑 Clear', on_click=self._clear_messages).props('dense flat')
            self._container = ui.column().classes(
                'w-full gap-0 h-96 overflow-y-auto font-mono text-sm'
            )

    def update(self, data: Dict) -> None:
        self._last_messages = data['messages']
        self._rebuild()

    def _rebuild(self) -> None:
        if not self._container or self._last_messages is None:
            return

        raw = bool(self._raw_checkbox.value)
        self._container.clear()
        with self._container:
            for entry in self._last_messages:
                self._render_entry(entry, raw)
        self._container.run_method('scrollTo', 0, 99999)

    @staticmethod
    def _render_entry(entry: MessageLogEntry, raw: bool) -> None:
        if raw or entry.direction is Direction.SENT or entry.is_hex:
            color = 'text-blue-800' if entry.direction is Direction.SENT else 'text-gray-700'
            ui.label(entry.format_line()).classes(f'{color} whitespace-pre-wrap')
            return

        line = classify(entry.text)
        ui.label(
            f"{entry.time} ← {line.category.icon} {line.display_text}"
        ).classes(f'{line.category.color} whitespace-pre-wrap')
