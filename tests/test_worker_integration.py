"""
Integration tests for the BLE worker wiring.

Drives BLEWorker with a FakeRadioAdapter: GUI commands go through the
SharedData command queue, radio events through the worker mailbox,
exactly as in the running application.

Tests cover:
- Scan → connect → discovery → ready → send/receive
- Command errors surfaced as status text
- Identity guard for traffic events
- HM-10 device info query and parsing
- Worker loop start/stop
"""

import asyncio
import unittest
from unittest import mock

from hm10_gui.ble.worker import BLEWorker
from hm10_gui.core.errors import ConnectFailed
from hm10_gui.core.events import (
    CharacteristicsDiscovered,
    Connected,
    ConnectionFailed,
    PeripheralDiscovered,
    PowerStateChanged,
    ServicesDiscovered,
    ValueUpdated,
    WriteCompleted,
)
from hm10_gui.core.models import ConnectionState, Direction, RadioPowerState
from hm10_gui.core.shared_data import SharedData

from fakes import (
    FFE0,
    FFE1,
    HM10_ID,
    OTHER_ID,
    FakeRadioAdapter,
    characteristic,
    hm10_peripheral,
    services,
)


class WorkerTestCase(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.adapter = FakeRadioAdapter()
        self.shared = SharedData()
        self.worker = BLEWorker(self.shared, adapter_factory=lambda sink: self.adapter)
        self.worker._setup()

    def event(self, event) -> None:
        self.worker.post_event(event)
        self.worker.process_pending()

    def command(self, **cmd) -> None:
        self.shared.put_command(cmd)
        self.worker.process_pending()

    def status(self) -> str:
        return self.shared.get_snapshot()['status']

    def bring_to_ready(self) -> None:
        self.event(PowerStateChanged(RadioPowerState.POWERED_ON))
        self.command(action='start_scan')
        self.event(PeripheralDiscovered(hm10_peripheral()))
        self.command(action='connect', identifier=HM10_ID)
        self.event(Connected(HM10_ID))
        self.event(ServicesDiscovered(HM10_ID, services(FFE0)))
        self.event(CharacteristicsDiscovered(
            HM10_ID, FFE0,
            (characteristic(FFE1, FFE0, "write-without-response", "notify"),),
        ))


class TestEndToEnd(WorkerTestCase):

    async def test_scan_connect_ready_send_receive(self):
        self.bring_to_ready()
        self.assertEqual(self.worker.session.state, ConnectionState.READY)
        self.assertEqual(
            self.shared.get_snapshot()['connection_state'], ConnectionState.READY,
        )

        self.command(action='send', text='AT')
        self.assertIn(("write", HM10_ID, FFE1, b"AT", mock.ANY), self.adapter.calls)

        self.event(ValueUpdated(HM10_ID, FFE1, b"OK+NAME:HMSoft\r\n"))
        snapshot = self.shared.get_snapshot()
        self.assertEqual(
            [(m.direction, m.text) for m in snapshot['messages']],
            [(Direction.SENT, "AT"), (Direction.RECEIVED, "OK+NAME:HMSoft")],
        )
        self.assertEqual(snapshot['device_info'].name, "HMSoft")

    async def test_scan_refused_before_power_on(self):
        self.command(action='start_scan')
        self.assertEqual(self.status(), "Bluetooth is not powered on. Cannot start scan.")
        self.assertEqual(self.adapter.calls, [])

    async def test_send_before_ready_sets_status(self):
        self.event(PowerStateChanged(RadioPowerState.POWERED_ON))
        self.command(action='send', text='AT')
        self.assertEqual(self.status(), "Not connected or write characteristic not found.")
        self.assertEqual(self.shared.get_snapshot()['messages'], [])

    async def test_connect_unknown_identifier(self):
        self.event(PowerStateChanged(RadioPowerState.POWERED_ON))
        self.command(action='connect', identifier=OTHER_ID)
        self.assertEqual(self.status(), f"Unknown device: {OTHER_ID}")
        self.assertEqual(self.adapter.calls_named("connect"), [])

    async def test_unknown_action_ignored(self):
        self.command(action='self_destruct')
        self.assertEqual(self.adapter.calls, [])

    async def test_connection_failed_event_records_failure(self):
        self.event(PowerStateChanged(RadioPowerState.POWERED_ON))
        self.command(action='start_scan')
        self.event(PeripheralDiscovered(hm10_peripheral()))
        self.command(action='connect', identifier=HM10_ID)
        self.event(ConnectionFailed(HM10_ID, "Device not found"))

        self.assertEqual(self.worker.session.state, ConnectionState.FAILED)
        self.assertIsInstance(self.worker.session.failure, ConnectFailed)
        self.assertEqual(
            self.status(),
            "Failed to connect to HMSoft: Device not found. Please try again.",
        )

    async def test_disconnect_command(self):
        self.bring_to_ready()
        self.command(action='disconnect')
        self.assertEqual(self.worker.session.state, ConnectionState.DISCONNECTING)
        self.assertEqual(
            self.adapter.calls_named("cancel_connection"),
            [("cancel_connection", HM10_ID)],
        )


class TestTrafficEvents(WorkerTestCase):

    async def test_value_from_other_peripheral_ignored(self):
        self.bring_to_ready()
        self.event(ValueUpdated(OTHER_ID, FFE1, b"hello"))
        self.assertEqual(self.shared.get_snapshot()['messages'], [])

    async def test_value_error_sets_status_and_logs_nothing(self):
        self.bring_to_ready()
        self.event(ValueUpdated(HM10_ID, FFE1, None, "read failed"))
        self.assertEqual(
            self.status(),
            f"Error receiving data from HMSoft on char {FFE1}: read failed",
        )
        self.assertEqual(self.shared.get_snapshot()['messages'], [])

    async def test_empty_value_sets_status(self):
        self.bring_to_ready()
        self.event(ValueUpdated(HM10_ID, FFE1, b""))
        self.assertEqual(
            self.status(), f"Received empty data packet from HMSoft on char {FFE1}."
        )
        self.assertEqual(self.shared.get_snapshot()['messages'], [])

    async def test_notification_before_ready_is_logged(self):
        self.event(PowerStateChanged(RadioPowerState.POWERED_ON))
        self.command(action='start_scan')
        self.event(PeripheralDiscovered(hm10_peripheral()))
        self.command(action='connect', identifier=HM10_ID)
        self.event(Connected(HM10_ID))
        self.event(ValueUpdated(HM10_ID, FFE1, b"early"))
        self.assertEqual(
            [m.text for m in self.shared.get_snapshot()['messages']], ["early"],
        )

    async def test_write_error_sets_status(self):
        self.bring_to_ready()
        self.event(WriteCompleted(HM10_ID, FFE1, "GATT error"))
        self.assertEqual(self.status(), "Error sending data to HMSoft: GATT error")


class TestDeviceInfoQuery(WorkerTestCase):

    async def test_query_sends_info_commands_in_order(self):
        self.bring_to_ready()
        self.adapter.reset()

        with mock.patch("hm10_gui.ble.commands.HM10_QUERY_INTERVAL", 0):
            self.command(action='query_device_info')
            await self.worker._cmd_handler._query_task

        sent = [c[3] for c in self.adapter.calls_named("write")]
        self.assertEqual(
            sent, [b"AT+NAME?", b"AT+ROLE?", b"AT+VERS?", b"AT+BAUD?", b"AT+ADDR?"],
        )

    async def test_query_before_ready_sets_status(self):
        self.event(PowerStateChanged(RadioPowerState.POWERED_ON))
        self.command(action='query_device_info')
        self.assertEqual(self.status(), "Not connected or write characteristic not found.")
        self.assertIsNone(self.worker._cmd_handler._query_task)

    async def test_responses_fill_device_info(self):
        self.bring_to_ready()
        for line in (b"OK+ROLE:0", b"OK+VERS:HMSoft V605", b"OK+ADDR:A4D578123456"):
            self.event(ValueUpdated(HM10_ID, FFE1, line))
        info = self.shared.get_snapshot()['device_info']
        self.assertEqual(info.role, "Slave")
        self.assertEqual(info.version, "HMSoft V605")
        self.assertEqual(info.mac_address, "A4D578123456")


class TestWorkerLoop(unittest.IsolatedAsyncioTestCase):

    async def test_loop_starts_and_closes_adapter(self):
        adapter = FakeRadioAdapter()
        worker = BLEWorker(SharedData(), adapter_factory=lambda sink: adapter)
        worker.stop()
        await worker._async_main()
        self.assertTrue(adapter.started)
        self.assertTrue(adapter.closed)

    async def test_loop_processes_commands_until_stopped(self):
        adapter = FakeRadioAdapter()
        shared = SharedData()
        worker = BLEWorker(shared, adapter_factory=lambda sink: adapter)
        main = asyncio.ensure_future(worker._async_main())

        await asyncio.sleep(0.01)
        worker.post_event(PowerStateChanged(RadioPowerState.POWERED_ON))
        # Commands are handled before events in each iteration
        await asyncio.sleep(0.2)
        shared.put_command({'action': 'start_scan'})
        for _ in range(20):
            if adapter.calls:
                break
            await asyncio.sleep(0.05)

        worker.stop()
        await main
        self.assertEqual(adapter.calls[0], ("set_scan", True, None))


if __name__ == "__main__":
    unittest.main()
