"""
Unit tests for TrafficMultiplexer.

Tests cover:
- Send preconditions and encoding
- Write mode taken from the binding
- Notification decoding with hex fallback
- Write acknowledgment status
"""

import unittest

from hm10_gui.ble.traffic import TrafficMultiplexer
from hm10_gui.core.errors import EncodingError, InvalidCommand, NotReady
from hm10_gui.core.models import (
    CharacteristicBinding,
    Direction,
    WriteMode,
)
from hm10_gui.core.shared_data import SharedData
from hm10_gui.services.response_classifier import ResponseCategory, classify

from fakes import FFE0, FFE1, HM10_ID, FakeRadioAdapter, characteristic, hm10_peripheral


class TestTrafficMultiplexer(unittest.TestCase):

    def setUp(self):
        self.adapter = FakeRadioAdapter()
        self.shared = SharedData()
        self.traffic = TrafficMultiplexer(self.adapter, self.shared)

    def bind(self, *properties: str) -> None:
        char = characteristic(FFE1, FFE0, *properties)
        self.traffic.bind(
            hm10_peripheral(), CharacteristicBinding(write=char, notify=char),
        )

    def messages(self):
        return self.shared.get_snapshot()['messages']

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def test_send_without_binding_raises_and_logs_nothing(self):
        with self.assertRaises(NotReady):
            self.traffic.send("AT")
        self.assertEqual(self.messages(), [])
        self.assertEqual(self.adapter.calls, [])

    def test_send_writes_utf8_and_logs_one_entry(self):
        self.bind("write-without-response", "notify")
        self.traffic.send("AT")

        self.assertEqual(
            self.adapter.calls,
            [("write", HM10_ID, FFE1, b"AT", WriteMode.WITHOUT_RESPONSE)],
        )
        messages = self.messages()
        self.assertEqual(len(messages), 1)
        self.assertEqual(messages[0].direction, Direction.SENT)
        self.assertEqual(messages[0].text, "AT")
        self.assertEqual(self.shared.get_snapshot()['status'], "Sent: AT")

    def test_send_uses_with_response_when_supported(self):
        self.bind("write", "write-without-response", "notify")
        self.traffic.send_at_command("AT+NAME?")
        self.assertEqual(self.adapter.calls[0][4], WriteMode.WITH_RESPONSE)

    def test_at_command_line_endings_are_stripped(self):
        self.bind("write-without-response", "notify")
        entry = self.traffic.send_at_command(" AT+VERS?\r\n")
        self.assertEqual(entry.text, "AT+VERS?")
        self.assertEqual(self.adapter.calls[0][3], b"AT+VERS?")

    def test_non_at_text_refused_as_at_command(self):
        self.bind("write-without-response", "notify")
        with self.assertRaises(InvalidCommand):
            self.traffic.send_at_command("hello")
        self.assertEqual(self.adapter.calls, [])
        self.assertEqual(self.messages(), [])

    def test_send_unencodable_text(self):
        self.bind("write", "notify")
        with self.assertRaises(EncodingError):
            self.traffic.send("\ud800")
        self.assertEqual(self.messages(), [])
        self.assertEqual(self.adapter.calls, [])

    def test_unbind_stops_sending(self):
        self.bind("write", "notify")
        self.traffic.unbind()
        with self.assertRaises(NotReady):
            self.traffic.send("AT")

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def test_notification_is_trimmed(self):
        entry = self.traffic.on_notification(b"OK+NAME:foo\r\n")
        self.assertEqual(entry.text, "OK+NAME:foo")
        self.assertEqual(entry.direction, Direction.RECEIVED)
        self.assertFalse(entry.is_hex)
        self.assertEqual(classify(entry.text).category, ResponseCategory.INFO)

    def test_blank_notification_is_dropped(self):
        self.assertIsNone(self.traffic.on_notification(b" \r\n"))
        self.assertEqual(self.messages(), [])

    def test_invalid_utf8_falls_back_to_hex(self):
        entry = self.traffic.on_notification(b"\xff\xfe\x01")
        self.assertTrue(entry.is_hex)
        self.assertEqual(entry.text, "fffe01")
        self.assertEqual(self.messages(), [entry])
        self.assertIn("(hex) fffe01", entry.format_line())

    # ------------------------------------------------------------------
    # Acknowledgment
    # ------------------------------------------------------------------

    def test_write_error_sets_status(self):
        self.bind("write", "notify")
        self.traffic.on_write_completed("Insufficient authentication")
        self.assertEqual(
            self.shared.get_snapshot()['status'],
            "Error sending data to HMSoft: Insufficient authentication",
        )

    def test_write_success_keeps_status(self):
        self.bind("write", "notify")
        self.traffic.send("AT")
        self.traffic.on_write_completed(None)
        self.assertEqual(self.shared.get_snapshot()['status'], "Sent: AT")


if __name__ == "__main__":
    unittest.main()
