"""
Unit tests for SharedData.

Tests cover:
- Message log cap and eviction order
- Snapshot contents and copies
- Update flags
- Command queue
"""

import unittest

from hm10_gui.core.models import (
    CharacteristicBinding,
    ConnectionState,
    HM10DeviceInfo,
    MessageLogEntry,
    PeripheralHandle,
    RadioPowerState,
    WriteMode,
)
from hm10_gui.core.shared_data import SharedData

from fakes import FFE0, FFE1, characteristic


class TestSharedData(unittest.TestCase):

    def setUp(self):
        self.shared = SharedData()

    # ------------------------------------------------------------------
    # Message log
    # ------------------------------------------------------------------

    def test_message_log_evicts_oldest_at_cap(self):
        for i in range(101):
            self.shared.add_message(MessageLogEntry.received(f"line {i}"))

        messages = self.shared.get_snapshot()['messages']
        self.assertEqual(len(messages), 100)
        self.assertEqual(messages[0].text, "line 1")
        self.assertEqual(messages[-1].text, "line 100")

    def test_custom_cap(self):
        shared = SharedData(max_messages=2)
        for text in ("a", "b", "c"):
            shared.add_message(MessageLogEntry.sent(text))
        self.assertEqual([m.text for m in shared.get_snapshot()['messages']], ["b", "c"])

    def test_clear_messages(self):
        self.shared.add_message(MessageLogEntry.sent("AT"))
        self.shared.clear_update_flags()
        self.shared.clear_messages()
        snapshot = self.shared.get_snapshot()
        self.assertEqual(snapshot['messages'], [])
        self.assertTrue(snapshot['messages_updated'])

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def test_initial_snapshot(self):
        snapshot = self.shared.get_snapshot()
        self.assertEqual(snapshot['status'], "Status: Not Connected")
        self.assertEqual(snapshot['connection_state'], ConnectionState.IDLE)
        self.assertFalse(snapshot['powered_on'])
        self.assertFalse(snapshot['has_write'])
        self.assertFalse(snapshot['has_notify'])
        self.assertIsNone(snapshot['peripheral'])

    def test_binding_presence_and_write_mode(self):
        write = characteristic(FFE1, FFE0, "write-without-response")
        self.shared.set_binding(CharacteristicBinding(write=write))
        snapshot = self.shared.get_snapshot()
        self.assertTrue(snapshot['has_write'])
        self.assertFalse(snapshot['has_notify'])
        self.assertEqual(snapshot['write_mode'], WriteMode.WITHOUT_RESPONSE)

    def test_power_and_connection(self):
        peripheral = PeripheralHandle("AA", "HMSoft")
        self.shared.set_power_state(RadioPowerState.POWERED_ON)
        self.shared.set_connection(ConnectionState.READY, peripheral)
        snapshot = self.shared.get_snapshot()
        self.assertTrue(snapshot['powered_on'])
        self.assertEqual(snapshot['connection_state'], ConnectionState.READY)
        self.assertEqual(snapshot['peripheral'], peripheral)

    def test_snapshot_collections_are_copies(self):
        self.shared.set_devices([PeripheralHandle("AA")])
        snapshot = self.shared.get_snapshot()
        snapshot['devices'].append(PeripheralHandle("BB"))
        self.assertEqual(len(self.shared.get_snapshot()['devices']), 1)

    def test_device_info_is_copied(self):
        info = HM10DeviceInfo(name="HMSoft")
        self.shared.set_device_info(info)
        info.name = "changed"
        self.assertEqual(self.shared.get_snapshot()['device_info'].name, "HMSoft")

    # ------------------------------------------------------------------
    # Flags
    # ------------------------------------------------------------------

    def test_snapshot_and_clear_flags(self):
        snapshot = self.shared.get_snapshot_and_clear_flags()
        self.assertTrue(snapshot['devices_updated'])

        again = self.shared.get_snapshot()
        self.assertFalse(again['devices_updated'])
        self.assertFalse(again['messages_updated'])
        self.assertFalse(again['connection_updated'])

    def test_add_message_sets_flag(self):
        self.shared.clear_update_flags()
        self.shared.add_message(MessageLogEntry.sent("AT"))
        self.assertTrue(self.shared.get_snapshot()['messages_updated'])

    # ------------------------------------------------------------------
    # Command queue
    # ------------------------------------------------------------------

    def test_command_queue_fifo(self):
        self.shared.put_command({'action': 'start_scan'})
        self.shared.put_command({'action': 'stop_scan'})
        self.assertEqual(self.shared.get_next_command()['action'], 'start_scan')
        self.assertEqual(self.shared.get_next_command()['action'], 'stop_scan')
        self.assertIsNone(self.shared.get_next_command())


if __name__ == "__main__":
    unittest.main()
