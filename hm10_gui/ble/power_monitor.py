"""
Radio power state via BlueZ D-Bus.

bleak has no portable way to observe whether the Bluetooth adapter is
switched on, so on Linux the ``org.bluez.Adapter1`` object is queried
directly: ``Powered`` and (BlueZ ≥ 5.64) ``PowerState`` are read once
at start and then followed through ``PropertiesChanged`` signals.

Other platforms report ``poweredOn``; a switched-off radio surfaces
there as a connect or scan error from bleak instead.

Uses ``dbus_fast`` (async, already a dependency of bleak on Linux).
"""

import logging
import sys
from typing import Any, Callable, Dict, List, Optional

from dbus_fast import BusType
from dbus_fast.aio import MessageBus
from dbus_fast.errors import DBusError, InterfaceNotFoundError

from hm10_gui.config import BLUEZ_ADAPTER, debug_print
from hm10_gui.core.models import RadioPowerState

logger = logging.getLogger(__name__)

BLUEZ_SERVICE = "org.bluez"
ADAPTER_INTERFACE = "org.bluez.Adapter1"
PROPERTIES_INTERFACE = "org.freedesktop.DBus.Properties"

_TRANSITIONAL = ("off-enabling", "on-disabling")

_ACCESS_DENIED = "org.freedesktop.DBus.Error.AccessDenied"
_NO_ADAPTER = (
    "org.freedesktop.DBus.Error.ServiceUnknown",
    "org.freedesktop.DBus.Error.UnknownObject",
    "org.bluez.Error.NotAvailable",
)


def power_state_from_properties(
    powered: Optional[bool],
    power_state: Optional[str] = None,
) -> RadioPowerState:
    """Map BlueZ adapter properties to a :class:`RadioPowerState`.

    ``PowerState`` wins when it names a transition; otherwise the
    boolean ``Powered`` decides.
    """
    if power_state in _TRANSITIONAL:
        return RadioPowerState.RESETTING
    if power_state == "off-blocked":
        return RadioPowerState.POWERED_OFF
    if powered is None:
        return RadioPowerState.UNKNOWN
    return RadioPowerState.POWERED_ON if powered else RadioPowerState.POWERED_OFF


def power_state_from_error(exc: Exception) -> RadioPowerState:
    """Map a failure to reach the adapter to a :class:`RadioPowerState`."""
    if isinstance(exc, InterfaceNotFoundError):
        return RadioPowerState.UNSUPPORTED
    if isinstance(exc, DBusError):
        if exc.type == _ACCESS_DENIED:
            return RadioPowerState.UNAUTHORIZED
        if exc.type in _NO_ADAPTER:
            return RadioPowerState.UNSUPPORTED
        return RadioPowerState.UNKNOWN
    if isinstance(exc, (FileNotFoundError, ConnectionRefusedError)):
        # No system bus socket: no BlueZ on this host
        return RadioPowerState.UNSUPPORTED
    if isinstance(exc, PermissionError):
        return RadioPowerState.UNAUTHORIZED
    return RadioPowerState.UNKNOWN


class PowerMonitor:
    """Follows the power state of one BlueZ adapter.

    Args:
        on_change: Called with the new state whenever it changes
                   (including the initial reading).
        adapter:   BlueZ adapter name, e.g. ``"hci0"``.
    """

    def __init__(
        self,
        on_change: Callable[[RadioPowerState], None],
        adapter: str = BLUEZ_ADAPTER,
    ) -> None:
        self._on_change = on_change
        self._path = f"/org/bluez/{adapter}"
        self._bus: Optional[MessageBus] = None
        self._properties = None
        self._powered: Optional[bool] = None
        self._power_state: Optional[str] = None
        self.state: Optional[RadioPowerState] = None

    async def start(self) -> None:
        """Read the initial state and subscribe to changes."""
        if not sys.platform.startswith("linux"):
            debug_print(f"No BlueZ on {sys.platform}, assuming radio is on")
            self._report(RadioPowerState.POWERED_ON)
            return

        try:
            self._bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
            introspection = await self._bus.introspect(BLUEZ_SERVICE, self._path)
            proxy = self._bus.get_proxy_object(
                BLUEZ_SERVICE, self._path, introspection,
            )
            adapter = proxy.get_interface(ADAPTER_INTERFACE)
            self._powered = await adapter.get_powered()
            self._power_state = await self._read_power_state(adapter)

            self._properties = proxy.get_interface(PROPERTIES_INTERFACE)
            self._properties.on_properties_changed(self._on_properties_changed)
        except (DBusError, InterfaceNotFoundError, OSError) as exc:
            state = power_state_from_error(exc)
            logger.warning(f"Adapter {self._path} unavailable: {exc}")
            print(f"BLE: ⚠️  Bluetooth adapter {self._path} unavailable: {exc}")
            self.stop()
            self._report(state)
            return

        state = power_state_from_properties(self._powered, self._power_state)
        print(f"BLE: Adapter {self._path} power state: {state.value}")
        self._report(state)

    def stop(self) -> None:
        if self._properties is not None:
            self._properties.off_properties_changed(self._on_properties_changed)
            self._properties = None
        if self._bus is not None:
            self._bus.disconnect()
            self._bus = None

    async def _read_power_state(self, adapter: Any) -> Optional[str]:
        # PowerState only exists on BlueZ 5.64 and later
        try:
            return await adapter.get_power_state()
        except (AttributeError, DBusError) as exc:
            debug_print(f"PowerState property not available: {exc}")
            return None

    def _on_properties_changed(
        self,
        interface_name: str,
        changed: Dict[str, Any],
        invalidated: List[str],
    ) -> None:
        if interface_name != ADAPTER_INTERFACE:
            return
        if "Powered" in changed:
            self._powered = changed["Powered"].value
        if "PowerState" in changed:
            self._power_state = changed["PowerState"].value
        if "Powered" in changed or "PowerState" in changed:
            self._report(
                power_state_from_properties(self._powered, self._power_state)
            )

    def _report(self, state: RadioPowerState) -> None:
        if state is self.state:
            return
        debug_print(f"Adapter power: {self.state} → {state.value}")
        self.state = state
        self._on_change(state)
