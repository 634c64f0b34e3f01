"""
Unit tests for DeviceListPanel.

NiceGUI's ``ui`` module is replaced by a MagicMock so the panel can be
rendered without a running page.
"""

import unittest
from unittest import mock

import hm10_gui.config as config
from hm10_gui.gui.panels.device_list_panel import DeviceListPanel


class TestDeviceListPanel(unittest.TestCase):

    def setUp(self):
        patcher = mock.patch("hm10_gui.gui.panels.device_list_panel.ui")
        self.ui = patcher.start()
        self.addCleanup(patcher.stop)
        self.commands = []
        self.panel = DeviceListPanel(self.commands.append)

    def hm10_default(self) -> bool:
        return self.ui.checkbox.call_args.kwargs['value']

    def test_hm10_only_default_follows_config_set_at_startup(self):
        with mock.patch.object(config, 'SCAN_HM10_ONLY', True):
            self.panel.render()
        self.assertTrue(self.hm10_default())

    def test_hm10_only_off_by_default(self):
        with mock.patch.object(config, 'SCAN_HM10_ONLY', False):
            self.panel.render()
        self.assertFalse(self.hm10_default())

    def test_scan_button_sends_start_scan_with_filter(self):
        self.panel.render()
        self.ui.button.return_value.text = '🔍 Scan'
        self.ui.checkbox.return_value.value = True

        self.panel._toggle_scan()
        self.assertEqual(
            self.commands, [{'action': 'start_scan', 'hm10_only': True}]
        )

    def test_stop_button_sends_stop_scan(self):
        self.panel.render()
        self.ui.button.return_value.text = '⏹ Stop'

        self.panel._toggle_scan()
        self.assertEqual(self.commands, [{'action': 'stop_scan'}])


if __name__ == "__main__":
    unittest.main()
