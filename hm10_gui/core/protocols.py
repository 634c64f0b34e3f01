"""
Protocol interfaces for HM-10 GUI.

Defines the contracts between components using ``typing.Protocol``.
Each protocol captures the subset of behaviour a specific consumer
needs, so the session components can be tested against lightweight
stubs instead of the radio stack or the concrete SharedData class.
"""

from typing import Dict, List, Optional, Protocol, runtime_checkable

from hm10_gui.core.models import (
    CharacteristicBinding,
    ConnectionState,
    HM10DeviceInfo,
    MessageLogEntry,
    PeripheralHandle,
    RadioPowerState,
    WriteMode,
)


# ----------------------------------------------------------------------
# RadioAdapter: outbound calls to the OS Bluetooth stack
# ----------------------------------------------------------------------

@runtime_checkable
class RadioAdapter(Protocol):
    """Fire-and-forget requests to the radio stack.

    Every call returns immediately; outcomes are delivered later as
    :data:`~hm10_gui.core.events.RadioEvent` instances.
    """

    def set_scan(self, active: bool, service_filter: Optional[str] = None) -> None: ...
    def connect(self, peripheral_id: str) -> None: ...
    def cancel_connection(self, peripheral_id: str) -> None: ...
    def discover_services(self, peripheral_id: str, service_filter: Optional[str] = None) -> None: ...
    def discover_characteristics(self, peripheral_id: str, service_uuid: str) -> None: ...
    def set_notify(self, peripheral_id: str, characteristic_uuid: str, enabled: bool) -> None: ...
    def write(self, peripheral_id: str, characteristic_uuid: str, data: bytes, mode: WriteMode) -> None: ...


# ----------------------------------------------------------------------
# Writer: used by the session components inside BLEWorker
# ----------------------------------------------------------------------

@runtime_checkable
class SharedDataWriter(Protocol):
    """Write-side interface used by the BLE worker and its collaborators.

    The worker publishes observable session state (status, connection,
    devices, binding presence, message log) and reads commands enqueued
    by the GUI.
    """

    def set_status(self, status: str) -> None: ...
    def set_power_state(self, state: RadioPowerState) -> None: ...
    def set_scanning(self, scanning: bool) -> None: ...
    def set_devices(self, devices: List[PeripheralHandle]) -> None: ...
    def set_connection(
        self, state: ConnectionState, peripheral: Optional[PeripheralHandle],
    ) -> None: ...
    def set_binding(self, binding: CharacteristicBinding) -> None: ...
    def add_message(self, entry: MessageLogEntry) -> None: ...
    def set_hm10_detection(self, is_hm10: bool, has_characteristics: bool) -> None: ...
    def set_device_info(self, info: HM10DeviceInfo) -> None: ...
    def get_next_command(self) -> Optional[Dict]: ...
    def put_command(self, cmd: Dict) -> None: ...


# ----------------------------------------------------------------------
# Reader: used by DashboardPage
# ----------------------------------------------------------------------

@runtime_checkable
class SharedDataReader(Protocol):
    """Read-side interface used by GUI pages.

    GUI pages read snapshots of the shared data, manage update flags
    and enqueue commands for the BLE worker.
    """

    def get_snapshot(self) -> Dict: ...
    def get_snapshot_and_clear_flags(self) -> Dict: ...
    def clear_update_flags(self) -> None: ...
    def clear_messages(self) -> None: ...
    def put_command(self, cmd: Dict) -> None: ...
