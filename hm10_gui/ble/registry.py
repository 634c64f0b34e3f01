"""
Discovered-peripheral registry for HM-10 GUI.

Owns the discovery set of one scan session: cleared when a scan starts,
append-only while scanning, unique by peripheral identity and kept in
insertion order.  Every change is published to SharedData so the device
list in the GUI follows along.
"""

from typing import List, Optional

from hm10_gui.config import HM10_SERVICE_UUID, debug_print
from hm10_gui.core.errors import RadioUnavailable
from hm10_gui.core.models import PeripheralHandle, RadioPowerState
from hm10_gui.core.protocols import RadioAdapter, SharedDataWriter


class DeviceRegistry:
    """Scan control and deduplicated discovery set.

    Args:
        adapter: RadioAdapter used to start/stop scans.
        shared:  SharedDataWriter receiving the device list and scan flag.
    """

    def __init__(self, adapter: RadioAdapter, shared: SharedDataWriter) -> None:
        self._adapter = adapter
        self._shared = shared
        self._devices: List[PeripheralHandle] = []
        self._known_ids: set = set()
        self._scanning = False
        self.power_state = RadioPowerState.UNKNOWN

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def devices(self) -> List[PeripheralHandle]:
        return list(self._devices)

    @property
    def is_scanning(self) -> bool:
        return self._scanning

    def get(self, identifier: str) -> Optional[PeripheralHandle]:
        for device in self._devices:
            if device.identifier == identifier:
                return device
        return None

    # ------------------------------------------------------------------
    # Scan control
    # ------------------------------------------------------------------

    def start_scan(self, hm10_only: bool = False) -> None:
        """Start a fresh scan session.

        Raises:
            RadioUnavailable: the radio is not powered on.  The
                discovery set is left untouched.
        """
        if self.power_state is not RadioPowerState.POWERED_ON:
            raise RadioUnavailable("Bluetooth is not powered on. Cannot start scan.")

        self._devices.clear()
        self._known_ids.clear()
        self._shared.set_devices([])

        self._scanning = True
        self._shared.set_scanning(True)
        if hm10_only:
            self._shared.set_status("Scanning for HM-10 devices...")
        else:
            self._shared.set_status("Scanning for devices...")

        self._adapter.set_scan(True, HM10_SERVICE_UUID if hm10_only else None)
        print(f"BLE: Scan started{' (HM-10 only)' if hm10_only else ''}")

    def stop_scan(self, *, update_status: bool = True) -> None:
        """Stop scanning.  Idempotent; only stops a scan that is running."""
        if self._scanning:
            self._adapter.set_scan(False)
            print(f"BLE: Scan stopped — {len(self._devices)} devices found")
        self._scanning = False
        self._shared.set_scanning(False)
        if update_status:
            self._shared.set_status("Scan stopped.")

    # ------------------------------------------------------------------
    # Radio events
    # ------------------------------------------------------------------

    def on_discovered(self, peripheral: PeripheralHandle) -> None:
        """Add a peripheral unless one with the same identity is present."""
        if not self._scanning:
            debug_print(
                f"Discovery outside scan window ignored: {peripheral.identifier}"
            )
            return
        if peripheral.identifier in self._known_ids:
            return

        self._known_ids.add(peripheral.identifier)
        self._devices.append(peripheral)
        self._shared.set_devices(self._devices)
        debug_print(
            f"Discovered {peripheral.display_name} ({peripheral.identifier})"
        )

    def on_power_state_changed(self, state: RadioPowerState) -> None:
        """Track radio power; a radio that is not on cannot keep scanning."""
        self.power_state = state
        if state is not RadioPowerState.POWERED_ON and self._scanning:
            self._scanning = False
            self._adapter.set_scan(False)
            self._shared.set_scanning(False)
            debug_print(f"Scan aborted: radio {state.value}")
