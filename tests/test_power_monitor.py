"""Unit tests for the BlueZ power state mapping and PowerMonitor."""

import unittest
from unittest import mock

from dbus_fast import Variant
from dbus_fast.errors import DBusError, InterfaceNotFoundError

from hm10_gui.ble.power_monitor import (
    ADAPTER_INTERFACE,
    PowerMonitor,
    power_state_from_error,
    power_state_from_properties,
)
from hm10_gui.core.models import RadioPowerState


class TestPowerStateMapping(unittest.TestCase):

    def test_powered(self):
        self.assertEqual(power_state_from_properties(True), RadioPowerState.POWERED_ON)
        self.assertEqual(power_state_from_properties(False), RadioPowerState.POWERED_OFF)

    def test_unknown_without_reading(self):
        self.assertEqual(power_state_from_properties(None), RadioPowerState.UNKNOWN)

    def test_transitions_are_resetting(self):
        self.assertEqual(
            power_state_from_properties(False, "off-enabling"), RadioPowerState.RESETTING,
        )
        self.assertEqual(
            power_state_from_properties(True, "on-disabling"), RadioPowerState.RESETTING,
        )

    def test_rfkill_blocked_is_off(self):
        self.assertEqual(
            power_state_from_properties(False, "off-blocked"), RadioPowerState.POWERED_OFF,
        )

    def test_errors(self):
        self.assertEqual(
            power_state_from_error(InterfaceNotFoundError("no Adapter1")),
            RadioPowerState.UNSUPPORTED,
        )
        self.assertEqual(
            power_state_from_error(
                DBusError("org.freedesktop.DBus.Error.AccessDenied", "denied")
            ),
            RadioPowerState.UNAUTHORIZED,
        )
        self.assertEqual(
            power_state_from_error(
                DBusError("org.freedesktop.DBus.Error.ServiceUnknown", "no bluez")
            ),
            RadioPowerState.UNSUPPORTED,
        )
        self.assertEqual(
            power_state_from_error(FileNotFoundError("/run/dbus/system_bus_socket")),
            RadioPowerState.UNSUPPORTED,
        )
        self.assertEqual(
            power_state_from_error(DBusError("org.bluez.Error.Failed", "?")),
            RadioPowerState.UNKNOWN,
        )


class TestPowerMonitor(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.states = []
        self.monitor = PowerMonitor(self.states.append, "hci0")

    async def test_non_linux_reports_powered_on(self):
        with mock.patch("hm10_gui.ble.power_monitor.sys.platform", "darwin"):
            await self.monitor.start()
        self.assertEqual(self.states, [RadioPowerState.POWERED_ON])

    def test_properties_changed_reports_transitions_once(self):
        self.monitor._on_properties_changed(
            ADAPTER_INTERFACE, {"Powered": Variant("b", True)}, [],
        )
        self.monitor._on_properties_changed(
            ADAPTER_INTERFACE, {"Powered": Variant("b", True)}, [],
        )
        self.monitor._on_properties_changed(
            ADAPTER_INTERFACE, {"PowerState": Variant("s", "on-disabling")}, [],
        )
        self.monitor._on_properties_changed(
            ADAPTER_INTERFACE,
            {"Powered": Variant("b", False), "PowerState": Variant("s", "off")},
            [],
        )
        self.assertEqual(
            self.states,
            [
                RadioPowerState.POWERED_ON,
                RadioPowerState.RESETTING,
                RadioPowerState.POWERED_OFF,
            ],
        )

    def test_other_interfaces_ignored(self):
        self.monitor._on_properties_changed(
            "org.bluez.Device1", {"Powered": Variant("b", True)}, [],
        )
        self.assertEqual(self.states, [])


if __name__ == "__main__":
    unittest.main()
