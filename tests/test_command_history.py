"""Unit tests for CommandHistory."""

import unittest

from hm10_gui.services.command_history import CommandHistory


class TestCommandHistory(unittest.TestCase):

    def setUp(self):
        self.history = CommandHistory(max_size=3)

    def test_newest_first(self):
        self.history.add("AT")
        self.history.add("AT+NAME?")
        self.assertEqual(self.history.entries, ["AT+NAME?", "AT"])

    def test_empty_command_ignored(self):
        self.history.add("")
        self.assertEqual(len(self.history), 0)

    def test_duplicate_moves_to_front(self):
        self.history.add("AT")
        self.history.add("AT+NAME?")
        self.history.add("AT")
        self.assertEqual(self.history.entries, ["AT", "AT+NAME?"])

    def test_bounded_drops_oldest(self):
        for cmd in ("a", "b", "c", "d"):
            self.history.add(cmd)
        self.assertEqual(self.history.entries, ["d", "c", "b"])

    def test_previous_walks_back_and_stops_at_oldest(self):
        self.history.add("a")
        self.history.add("b")
        self.assertEqual(self.history.previous(), "b")
        self.assertEqual(self.history.previous(), "a")
        self.assertEqual(self.history.previous(), "a")

    def test_next_returns_empty_past_newest(self):
        self.history.add("a")
        self.history.add("b")
        self.history.previous()
        self.history.previous()
        self.assertEqual(self.history.next(), "b")
        self.assertEqual(self.history.next(), "")
        self.assertEqual(self.history.current_index, -1)

    def test_previous_on_empty_history(self):
        self.assertIsNone(self.history.previous())

    def test_add_resets_navigation(self):
        self.history.add("a")
        self.history.previous()
        self.history.add("b")
        self.assertEqual(self.history.current_index, -1)
        self.assertEqual(self.history.previous(), "b")

    def test_reset_index_restarts_from_newest(self):
        self.history.add("a")
        self.history.add("b")
        self.history.previous()
        self.history.previous()
        self.history.reset_index()
        self.assertEqual(self.history.previous(), "b")


if __name__ == "__main__":
    unittest.main()
