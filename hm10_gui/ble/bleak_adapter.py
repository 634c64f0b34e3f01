"""
bleak implementation of the radio adapter.

Turns the fire-and-forget :class:`~hm10_gui.core.protocols.RadioAdapter`
calls into bleak coroutines scheduled on the worker's event loop, and
reports every outcome as a typed radio event through ``sink``.  The
session components never see bleak objects: peripherals are identified
by their address, characteristics by their UUID.

Must be created and used on the worker's event loop.
"""

import asyncio
import functools
from typing import Callable, Coroutine, Dict, Optional, Set

from bleak import BleakClient, BleakScanner
from bleak.backends.device import BLEDevice
from bleak.backends.scanner import AdvertisementData
from bleak.exc import BleakError

from hm10_gui.config import BLE_CONNECT_TIMEOUT, BLUEZ_ADAPTER, debug_print
from hm10_gui.core.events import (
    CharacteristicsDiscovered,
    Connected,
    ConnectionFailed,
    Disconnected,
    NotifyStateChanged,
    PeripheralDiscovered,
    PowerStateChanged,
    RadioEvent,
    ServicesDiscovered,
    ValueUpdated,
    WriteCompleted,
)
from hm10_gui.core.models import (
    CharacteristicInfo,
    PeripheralHandle,
    RadioPowerState,
    ServiceInfo,
    WriteMode,
)
from hm10_gui.ble.power_monitor import PowerMonitor

# Errors bleak and the OS stack raise for a failed GATT operation.
_GATT_ERRORS = (BleakError, asyncio.TimeoutError, OSError)


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class BleakRadioAdapter:
    """RadioAdapter backed by bleak (and BlueZ D-Bus for power state).

    Args:
        sink:    Receives every radio event; normally the worker mailbox.
        adapter: Host adapter name (BlueZ only, e.g. ``"hci0"``).
    """

    def __init__(
        self,
        sink: Callable[[RadioEvent], None],
        adapter: str = BLUEZ_ADAPTER,
    ) -> None:
        self._sink = sink
        self._adapter_name = adapter
        self._power = PowerMonitor(self._on_power_state, adapter)

        self._scanner: Optional[BleakScanner] = None
        self._scan_lock = asyncio.Lock()
        self._seen: Dict[str, BLEDevice] = {}

        self._clients: Dict[str, BleakClient] = {}
        self._connect_tasks: Dict[str, asyncio.Task] = {}
        self._attempt_clients: Dict[asyncio.Task, BleakClient] = {}
        self._closing: Set[str] = set()
        self._tasks: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        await self._power.start()

    async def close(self) -> None:
        """Stop scanning, drop every link and stop the power monitor."""
        async with self._scan_lock:
            await self._stop_scanner()
        for task in list(self._connect_tasks.values()):
            task.cancel()
        for peripheral_id, client in list(self._clients.items()):
            self._closing.add(peripheral_id)
            try:
                await client.disconnect()
            except _GATT_ERRORS as exc:
                debug_print(f"Disconnect of {peripheral_id} on close failed: {exc}")
        self._clients.clear()
        for task in list(self._tasks):
            task.cancel()
        self._power.stop()

    # ------------------------------------------------------------------
    # RadioAdapter
    # ------------------------------------------------------------------

    def set_scan(self, active: bool, service_filter: Optional[str] = None) -> None:
        if active:
            self._spawn(self._start_scan(service_filter), "start scan")
        else:
            self._spawn(self._stop_scan(), "stop scan")

    def connect(self, peripheral_id: str) -> None:
        task = self._spawn(self._connect(peripheral_id), f"connect {peripheral_id}")
        self._connect_tasks[peripheral_id] = task
        task.add_done_callback(
            functools.partial(self._on_connect_done, peripheral_id)
        )

    def cancel_connection(self, peripheral_id: str) -> None:
        task = self._connect_tasks.get(peripheral_id)
        if task is not None and not task.done():
            debug_print(f"Cancelling pending connect to {peripheral_id}")
            task.cancel()
            return

        client = self._clients.get(peripheral_id)
        if client is None:
            # Nothing to tear down; still confirm so the caller can settle
            self._emit(Disconnected(peripheral_id))
            return
        self._closing.add(peripheral_id)
        self._spawn(
            self._disconnect(peripheral_id, client), f"disconnect {peripheral_id}",
        )

    def discover_services(
        self, peripheral_id: str, service_filter: Optional[str] = None,
    ) -> None:
        client = self._clients.get(peripheral_id)
        if client is None or not client.is_connected:
            self._emit(ServicesDiscovered(peripheral_id, error="Not connected"))
            return

        # bleak resolves the whole GATT table while connecting
        services = tuple(
            ServiceInfo(service.uuid)
            for service in client.services
            if service_filter is None or service.uuid == service_filter
        )
        self._emit(ServicesDiscovered(peripheral_id, services))

    def discover_characteristics(self, peripheral_id: str, service_uuid: str) -> None:
        client = self._clients.get(peripheral_id)
        service = client.services.get_service(service_uuid) if client else None
        if service is None:
            self._emit(CharacteristicsDiscovered(
                peripheral_id, service_uuid, error="Service not found",
            ))
            return

        characteristics = tuple(
            CharacteristicInfo(
                uuid=char.uuid,
                service_uuid=service_uuid,
                properties=frozenset(char.properties),
            )
            for char in service.characteristics
        )
        self._emit(CharacteristicsDiscovered(
            peripheral_id, service_uuid, characteristics,
        ))

    def set_notify(self, peripheral_id: str, characteristic_uuid: str, enabled: bool) -> None:
        self._spawn(
            self._set_notify(peripheral_id, characteristic_uuid, enabled),
            f"notify {characteristic_uuid}",
        )

    def write(
        self,
        peripheral_id: str,
        characteristic_uuid: str,
        data: bytes,
        mode: WriteMode,
    ) -> None:
        self._spawn(
            self._write(peripheral_id, characteristic_uuid, data, mode),
            f"write {characteristic_uuid}",
        )

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    async def _start_scan(self, service_filter: Optional[str]) -> None:
        async with self._scan_lock:
            await self._stop_scanner()
            self._scanner = BleakScanner(
                detection_callback=self._on_detection,
                service_uuids=[service_filter] if service_filter else None,
                adapter=self._adapter_name,
            )
            try:
                await self._scanner.start()
            except _GATT_ERRORS as exc:
                self._scanner = None
                print(f"BLE: ⚠️  Scan could not start: {_describe(exc)}")
                return
            debug_print(f"Scanner started (filter={service_filter})")

    async def _stop_scan(self) -> None:
        async with self._scan_lock:
            await self._stop_scanner()

    async def _stop_scanner(self) -> None:
        if self._scanner is None:
            return
        scanner, self._scanner = self._scanner, None
        try:
            await scanner.stop()
        except _GATT_ERRORS as exc:
            debug_print(f"Scanner stop failed: {exc}")

    def _on_detection(self, device: BLEDevice, advertisement: AdvertisementData) -> None:
        self._seen[device.address] = device
        name = advertisement.local_name or device.name
        self._emit(PeripheralDiscovered(
            PeripheralHandle(device.address, name, ref=device)
        ))

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def _connect(self, peripheral_id: str) -> None:
        target = self._seen.get(peripheral_id, peripheral_id)
        client = BleakClient(
            target,
            disconnected_callback=functools.partial(self._on_link_lost, peripheral_id),
            timeout=BLE_CONNECT_TIMEOUT,
            adapter=self._adapter_name,
        )
        self._clients[peripheral_id] = client
        self._attempt_clients[asyncio.current_task()] = client
        try:
            await client.connect()
        except _GATT_ERRORS as exc:
            if self._clients.get(peripheral_id) is client:
                del self._clients[peripheral_id]
            self._emit(ConnectionFailed(peripheral_id, _describe(exc)))
            return
        self._emit(Connected(peripheral_id))

    def _on_connect_done(self, peripheral_id: str, task: asyncio.Task) -> None:
        if self._connect_tasks.get(peripheral_id) is task:
            del self._connect_tasks[peripheral_id]
        client = self._attempt_clients.pop(task, None)
        if not task.cancelled():
            return
        # A newer attempt for the same address may own the registered client
        if client is not None:
            if self._clients.get(peripheral_id) is client:
                del self._clients[peripheral_id]
            self._spawn(client.disconnect(), f"abort {peripheral_id}")
        if peripheral_id in self._connect_tasks or peripheral_id in self._clients:
            debug_print(f"Stale connect attempt to {peripheral_id} cancelled")
            return
        self._emit(Disconnected(peripheral_id))

    async def _disconnect(self, peripheral_id: str, client: BleakClient) -> None:
        try:
            await client.disconnect()
        except _GATT_ERRORS as exc:
            if self._clients.get(peripheral_id) is client:
                del self._clients[peripheral_id]
                self._closing.discard(peripheral_id)
                self._emit(Disconnected(peripheral_id, _describe(exc)))
            return
        # Some backends do not call disconnected_callback on request
        self._on_link_lost(peripheral_id, client)

    def _on_link_lost(self, peripheral_id: str, client: BleakClient) -> None:
        if self._clients.get(peripheral_id) is not client:
            return
        del self._clients[peripheral_id]
        if peripheral_id in self._closing:
            self._closing.discard(peripheral_id)
            self._emit(Disconnected(peripheral_id))
        else:
            self._emit(Disconnected(peripheral_id, "Connection lost"))

    # ------------------------------------------------------------------
    # Notify / write
    # ------------------------------------------------------------------

    async def _set_notify(
        self, peripheral_id: str, characteristic_uuid: str, enabled: bool,
    ) -> None:
        client = self._clients.get(peripheral_id)
        if client is None:
            self._emit(NotifyStateChanged(
                peripheral_id, characteristic_uuid, False, "Not connected",
            ))
            return
        try:
            if enabled:
                await client.start_notify(
                    characteristic_uuid,
                    functools.partial(
                        self._on_notification, peripheral_id, characteristic_uuid,
                    ),
                )
            else:
                await client.stop_notify(characteristic_uuid)
        except _GATT_ERRORS as exc:
            self._emit(NotifyStateChanged(
                peripheral_id, characteristic_uuid, not enabled, _describe(exc),
            ))
            return
        self._emit(NotifyStateChanged(peripheral_id, characteristic_uuid, enabled))

    def _on_notification(
        self, peripheral_id: str, characteristic_uuid: str, sender, data: bytearray,
    ) -> None:
        self._emit(ValueUpdated(peripheral_id, characteristic_uuid, bytes(data)))

    async def _write(
        self,
        peripheral_id: str,
        characteristic_uuid: str,
        data: bytes,
        mode: WriteMode,
    ) -> None:
        client = self._clients.get(peripheral_id)
        if client is None:
            self._emit(WriteCompleted(peripheral_id, characteristic_uuid, "Not connected"))
            return
        with_response = mode is WriteMode.WITH_RESPONSE
        try:
            await client.write_gatt_char(characteristic_uuid, data, response=with_response)
        except _GATT_ERRORS as exc:
            self._emit(WriteCompleted(
                peripheral_id, characteristic_uuid, _describe(exc),
            ))
            return
        if with_response:
            self._emit(WriteCompleted(peripheral_id, characteristic_uuid))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _on_power_state(self, state: RadioPowerState) -> None:
        self._emit(PowerStateChanged(state))

    def _emit(self, event: RadioEvent) -> None:
        self._sink(event)

    def _spawn(self, coro: Coroutine, what: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._on_task_done, what))
        return task

    def _on_task_done(self, what: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            print(f"BLE: ⚠️  {what} failed: {_describe(exc)}")
