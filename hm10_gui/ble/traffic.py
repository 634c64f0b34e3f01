"""
Outbound/inbound byte traffic with the connected peripheral.

The session binds a write channel here once it reaches ``ready`` and
unbinds it on any disconnect.  Outbound text is UTF-8 encoded and
written with the binding's write mode; inbound notifications are
decoded and appended to the message log, falling back to hex for
bytes that are not valid UTF-8 so nothing is lost.
"""

from typing import Optional

from hm10_gui.config import debug_print
from hm10_gui.core.errors import EncodingError, InvalidCommand, NotReady
from hm10_gui.core.models import (
    CharacteristicBinding,
    MessageLogEntry,
    PeripheralHandle,
)
from hm10_gui.core.protocols import RadioAdapter, SharedDataWriter


class TrafficMultiplexer:
    """Encodes sends and decodes notifications for the active session.

    Args:
        adapter: RadioAdapter used for writes.
        shared:  SharedDataWriter receiving log entries and status.
    """

    def __init__(self, adapter: RadioAdapter, shared: SharedDataWriter) -> None:
        self._adapter = adapter
        self._shared = shared
        self._peripheral: Optional[PeripheralHandle] = None
        self._binding: Optional[CharacteristicBinding] = None

    # ------------------------------------------------------------------
    # Binding (driven by SessionStateMachine)
    # ------------------------------------------------------------------

    @property
    def is_bound(self) -> bool:
        return self._binding is not None and self._binding.has_write

    def bind(self, peripheral: PeripheralHandle, binding: CharacteristicBinding) -> None:
        self._peripheral = peripheral
        self._binding = binding
        debug_print(
            f"Traffic bound: write={binding.write.uuid if binding.write else None} "
            f"({binding.write_mode.value})"
        )

    def unbind(self) -> None:
        self._peripheral = None
        self._binding = None

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def send(self, text: str) -> MessageLogEntry:
        """Write *text* to the bound write channel.

        The ``sent`` entry is logged immediately without waiting for an
        acknowledgment, because write-without-response has none.

        Raises:
            NotReady:      no write channel is bound (nothing is queued).
            EncodingError: *text* cannot be encoded as UTF-8.
        """
        if not self.is_bound or self._peripheral is None:
            raise NotReady("Not connected or write characteristic not found.")

        try:
            data = text.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise EncodingError(
                "Error: Could not convert string to sendable data."
            ) from exc

        mode = self._binding.write_mode
        self._adapter.write(
            self._peripheral.identifier, self._binding.write.uuid, data, mode,
        )

        entry = MessageLogEntry.sent(text)
        self._shared.add_message(entry)
        self._shared.set_status(f"Sent: {text}")
        debug_print(
            f"Sent {text!r} to {self._binding.write.uuid} ({mode.value})"
        )
        return entry

    def send_at_command(self, command: str) -> MessageLogEntry:
        """Send an AT command without surrounding whitespace or line endings.

        HM-10 firmware takes everything after ``AT`` literally, so a
        trailing CR/LF would become part of the command.

        Raises:
            InvalidCommand: *command* does not start with ``AT``.
            NotReady:       no write channel is bound.
        """
        command = command.strip()
        if not command.upper().startswith("AT"):
            raise InvalidCommand(f"Not an AT command: {command!r}")
        return self.send(command)

    def on_write_completed(self, error: Optional[str]) -> None:
        """Acknowledgment of a with-response write (or any failed write)."""
        name = self._peripheral.display_name if self._peripheral else "device"
        if error:
            self._shared.set_status(f"Error sending data to {name}: {error}")
            print(f"BLE: ⚠️  Write failed on {name}: {error}")
            return
        debug_print(f"Write acknowledged by {name}")

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def on_notification(self, data: bytes) -> Optional[MessageLogEntry]:
        """Decode a notification value and log it.

        Returns the appended entry, or None when the decoded text is
        blank after trimming.
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            entry = MessageLogEntry.received(data.hex(), is_hex=True)
            self._shared.add_message(entry)
            debug_print(f"Received non-UTF-8 data (hex): {entry.text}")
            return entry

        trimmed = text.strip()
        if not trimmed:
            return None

        entry = MessageLogEntry.received(trimmed)
        self._shared.add_message(entry)
        return entry
