"""
BLE communication worker for HM-10 GUI.

Runs in a separate thread with its own asyncio event loop.  Creates the
radio adapter, wires the session components together and runs the
processing loop.

Every session mutation happens on this loop: GUI commands arrive
through the SharedData command queue, radio events through an
in-loop mailbox that the adapter posts into.  Nothing else touches the
registry, the session or the traffic multiplexer.

Responsibilities deliberately kept narrow:
    - Thread lifecycle and asyncio loop
    - Radio adapter start/close
    - Wiring CommandHandler and EventHandler

Scan control       → :mod:`hm10_gui.ble.registry`
Connection / GATT  → :mod:`hm10_gui.ble.session`
Send / receive     → :mod:`hm10_gui.ble.traffic`
Command execution  → :mod:`hm10_gui.ble.commands`
Event routing      → :mod:`hm10_gui.ble.events`
bleak backend      → :mod:`hm10_gui.ble.bleak_adapter`
"""

import asyncio
import threading
from typing import Callable, Optional

from hm10_gui.config import (
    BLUEZ_ADAPTER,
    WORKER_POLL_INTERVAL,
    debug_print,
)
from hm10_gui.core.events import RadioEvent
from hm10_gui.core.protocols import RadioAdapter, SharedDataWriter
from hm10_gui.ble.bleak_adapter import BleakRadioAdapter
from hm10_gui.ble.commands import CommandHandler
from hm10_gui.ble.events import EventHandler
from hm10_gui.ble.registry import DeviceRegistry
from hm10_gui.ble.session import SessionStateMachine
from hm10_gui.ble.traffic import TrafficMultiplexer

# Builds the radio adapter from the mailbox sink (tests inject a fake).
AdapterFactory = Callable[[Callable[[RadioEvent], None]], RadioAdapter]


class BLEWorker:
    """BLE communication worker that runs in a separate thread.

    Args:
        shared:          SharedDataWriter for thread-safe communication.
        adapter:         BlueZ adapter name (Linux only).
        adapter_factory: Builds the RadioAdapter; defaults to bleak.
    """

    def __init__(
        self,
        shared: SharedDataWriter,
        adapter: str = BLUEZ_ADAPTER,
        adapter_factory: Optional[AdapterFactory] = None,
    ) -> None:
        self.shared = shared
        self.running = True
        self._adapter_name = adapter
        self._adapter_factory = adapter_factory or self._bleak_adapter
        self._mailbox: Optional[asyncio.Queue] = None

        # Collaborators (created on the worker loop in _setup)
        self.adapter: Optional[RadioAdapter] = None
        self.registry: Optional[DeviceRegistry] = None
        self.session: Optional[SessionStateMachine] = None
        self.traffic: Optional[TrafficMultiplexer] = None
        self._evt_handler: Optional[EventHandler] = None
        self._cmd_handler: Optional[CommandHandler] = None

    # ------------------------------------------------------------------
    # Thread lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the worker in a new daemon thread."""
        thread = threading.Thread(target=self._run, daemon=True)
        thread.start()
        debug_print("BLE worker thread started")

    def stop(self) -> None:
        """Ask the processing loop to exit (thread-safe)."""
        self.running = False

    def _run(self) -> None:
        asyncio.run(self._async_main())

    async def _async_main(self) -> None:
        self._setup()
        print("BLE: Worker ready, waiting for radio...")
        try:
            await self.adapter.start()
            while self.running:
                try:
                    self.process_pending()
                except Exception as e:
                    print(f"BLE: ⚠️  Worker loop error: {e}")
                    debug_print(f"Processing error: {e!r}")
                await asyncio.sleep(WORKER_POLL_INTERVAL)
        finally:
            await self.adapter.close()
            print("BLE: Worker stopped")

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def _bleak_adapter(self, sink: Callable[[RadioEvent], None]) -> RadioAdapter:
        return BleakRadioAdapter(sink, self._adapter_name)

    def _setup(self) -> None:
        """Create the mailbox and wire the collaborators.

        Must run on the worker loop: the mailbox and the adapter's tasks
        belong to it.
        """
        self._mailbox = asyncio.Queue()
        self.adapter = self._adapter_factory(self.post_event)

        self.registry = DeviceRegistry(self.adapter, self.shared)
        self.traffic = TrafficMultiplexer(self.adapter, self.shared)
        self.session = SessionStateMachine(
            self.adapter,
            self.shared,
            self.registry,
            self.traffic,
        )
        self._evt_handler = EventHandler(
            self.session, self.registry, self.traffic, self.shared,
        )
        self._cmd_handler = CommandHandler(
            self.session, self.registry, self.traffic, self.shared,
        )

    # ------------------------------------------------------------------
    # Mailbox
    # ------------------------------------------------------------------

    def post_event(self, event: RadioEvent) -> None:
        """Queue a radio event.  Only call from the worker loop."""
        self._mailbox.put_nowait(event)

    def process_pending(self) -> None:
        """Run one iteration: GUI commands first, then radio events.

        Events posted while handling an event are left for the next
        iteration, so handlers never run re-entrantly.
        """
        self._cmd_handler.process_all()

        for _ in range(self._mailbox.qsize()):
            event = self._mailbox.get_nowait()
            self._evt_handler.dispatch(event)
