"""
Thread-safe shared data container for HM-10 GUI.

SharedData is the observable session store shared between the BLE
worker thread and the GUI main thread.  All access goes through methods
that acquire one threading.Lock, so both threads can safely read and
write.

The worker is the only writer of session state; the GUI only reads
snapshots and enqueues commands.
"""

import queue
import threading
from collections import deque
from dataclasses import replace
from typing import Deque, Dict, List, Optional

from hm10_gui.config import MESSAGE_LOG_MAX, debug_print
from hm10_gui.core.models import (
    UNRESOLVED,
    CharacteristicBinding,
    ConnectionState,
    HM10DeviceInfo,
    MessageLogEntry,
    PeripheralHandle,
    RadioPowerState,
)


class SharedData:
    """
    Thread-safe container for shared data between BLE worker and GUI.

    Implements the ``SharedDataWriter`` and ``SharedDataReader``
    protocols defined in ``protocols.py``.

    Args:
        max_messages: Message log cap; the oldest entry is evicted
                      once it is exceeded.
    """

    def __init__(self, max_messages: int = MESSAGE_LOG_MAX) -> None:
        self.lock = threading.Lock()

        # Radio and connection status
        self.status: str = "Status: Not Connected"
        self.power_state: RadioPowerState = RadioPowerState.UNKNOWN
        self.scanning: bool = False
        self.connection_state: ConnectionState = ConnectionState.IDLE
        self.peripheral: Optional[PeripheralHandle] = None
        self.binding: CharacteristicBinding = UNRESOLVED
        self.is_hm10: bool = False
        self.has_hm10_characteristics: bool = False

        # Collections
        self.devices: List[PeripheralHandle] = []
        self.messages: Deque[MessageLogEntry] = deque(maxlen=max_messages)
        self.device_info = HM10DeviceInfo()

        # Command queue (GUI → BLE)
        self.cmd_queue: queue.Queue = queue.Queue()

        # Update flags, initially True so the first GUI render shows data
        self.devices_updated: bool = True
        self.messages_updated: bool = True
        self.connection_updated: bool = True

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def set_status(self, status: str) -> None:
        with self.lock:
            self.status = status
        debug_print(f"Status: {status}")

    def set_power_state(self, state: RadioPowerState) -> None:
        with self.lock:
            self.power_state = state

    def set_scanning(self, scanning: bool) -> None:
        with self.lock:
            self.scanning = scanning

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def set_connection(
        self,
        state: ConnectionState,
        peripheral: Optional[PeripheralHandle],
    ) -> None:
        """Publish the connection state and the connected peripheral."""
        with self.lock:
            self.connection_state = state
            self.peripheral = peripheral
            self.connection_updated = True

    def set_binding(self, binding: CharacteristicBinding) -> None:
        with self.lock:
            self.binding = binding
            self.connection_updated = True

    def set_hm10_detection(self, is_hm10: bool, has_characteristics: bool) -> None:
        """Publish whether the connected peripheral looks like an HM-10."""
        with self.lock:
            self.is_hm10 = is_hm10
            self.has_hm10_characteristics = has_characteristics
            self.connection_updated = True

    def set_device_info(self, info: HM10DeviceInfo) -> None:
        with self.lock:
            self.device_info = replace(info)
            self.connection_updated = True

    # ------------------------------------------------------------------
    # Command queue
    # ------------------------------------------------------------------

    def put_command(self, cmd: Dict) -> None:
        self.cmd_queue.put(cmd)

    def get_next_command(self) -> Optional[Dict]:
        try:
            return self.cmd_queue.get_nowait()
        except queue.Empty:
            return None

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def set_devices(self, devices: List[PeripheralHandle]) -> None:
        with self.lock:
            self.devices = list(devices)
            self.devices_updated = True
            debug_print(f"Devices updated: {len(self.devices)} peripherals")

    def add_message(self, entry: MessageLogEntry) -> None:
        """Append a log entry (max ``max_messages``, oldest evicted)."""
        with self.lock:
            self.messages.append(entry)
            self.messages_updated = True
            debug_print(
                f"Message {entry.direction.value}: {entry.text[:30]}"
            )

    def clear_messages(self) -> None:
        with self.lock:
            self.messages.clear()
            self.messages_updated = True

    # ------------------------------------------------------------------
    # Snapshot and flags
    # ------------------------------------------------------------------

    def get_snapshot(self) -> Dict:
        """Create a complete snapshot of all data for the GUI.

        Returns a plain dict; collections are copies, entries are
        immutable dataclass instances.
        """
        with self.lock:
            return self._build_snapshot_unlocked()

    def get_snapshot_and_clear_flags(self) -> Dict:
        """Atomically snapshot all data and reset update flags.

        A single lock acquisition prevents the worker from setting a
        flag between the snapshot and the reset, which would make the
        GUI miss that update.
        """
        with self.lock:
            snapshot = self._build_snapshot_unlocked()
            self._clear_flags_unlocked()
            return snapshot

    def _build_snapshot_unlocked(self) -> Dict:
        """Build the snapshot dict.  MUST be called with self.lock held."""
        return {
            # Status
            'status': self.status,
            'power_state': self.power_state,
            'powered_on': self.power_state is RadioPowerState.POWERED_ON,
            'scanning': self.scanning,
            # Connection
            'connection_state': self.connection_state,
            'peripheral': self.peripheral,
            'has_write': self.binding.has_write,
            'has_notify': self.binding.has_notify,
            'write_mode': self.binding.write_mode,
            'binding': self.binding,
            'is_hm10': self.is_hm10,
            'has_hm10_characteristics': self.has_hm10_characteristics,
            'device_info': replace(self.device_info),
            # Collections (copies)
            'devices': list(self.devices),
            'messages': list(self.messages),
            # Flags
            'devices_updated': self.devices_updated,
            'messages_updated': self.messages_updated,
            'connection_updated': self.connection_updated,
        }

    def clear_update_flags(self) -> None:
        with self.lock:
            self._clear_flags_unlocked()

    def _clear_flags_unlocked(self) -> None:
        self.devices_updated = False
        self.messages_updated = False
        self.connection_updated = False
