"""
GUI command handlers for HM-10 GUI.

The GUI enqueues plain dict commands on SharedData; the worker drains
them on its event loop and each action maps to one handler.  New
commands can be registered without modifying existing code.

Domain errors raised by the session components are shown to the user
as status text instead of propagating into the worker loop.
"""

import asyncio
from typing import Dict, Optional

from hm10_gui.config import (
    HM10_INFO_QUERY_COMMANDS,
    HM10_QUERY_INTERVAL,
    debug_print,
)
from hm10_gui.core.errors import HM10Error, NotReady
from hm10_gui.core.models import PeripheralHandle
from hm10_gui.core.protocols import SharedDataWriter
from hm10_gui.ble.registry import DeviceRegistry
from hm10_gui.ble.session import SessionStateMachine
from hm10_gui.ble.traffic import TrafficMultiplexer


class CommandHandler:
    """Dispatches and executes commands sent from the GUI.

    Args:
        session:  SessionStateMachine for connect/disconnect.
        registry: DeviceRegistry for scanning and peripheral lookup.
        traffic:  TrafficMultiplexer for outbound text.
        shared:   SharedDataWriter for commands and status.
    """

    def __init__(
        self,
        session: SessionStateMachine,
        registry: DeviceRegistry,
        traffic: TrafficMultiplexer,
        shared: SharedDataWriter,
    ) -> None:
        self._session = session
        self._registry = registry
        self._traffic = traffic
        self._shared = shared
        self._query_task: Optional[asyncio.Task] = None

        # Handler registry, add new commands here
        self._handlers: Dict[str, object] = {
            'start_scan': self._cmd_start_scan,
            'stop_scan': self._cmd_stop_scan,
            'connect': self._cmd_connect,
            'disconnect': self._cmd_disconnect,
            'send': self._cmd_send,
            'query_device_info': self._cmd_query_device_info,
        }

    def process_all(self) -> None:
        """Drain the command queue and dispatch each command."""
        while True:
            cmd = self._shared.get_next_command()
            if cmd is None:
                break
            self._dispatch(cmd)

    def _dispatch(self, cmd: Dict) -> None:
        action = cmd.get('action')
        handler = self._handlers.get(action)
        if not handler:
            debug_print(f"Unknown command action: {action}")
            return
        try:
            handler(cmd)
        except HM10Error as exc:
            self._shared.set_status(str(exc))
            debug_print(f"Command {action} rejected: {exc}")

    # ------------------------------------------------------------------
    # Individual command handlers
    # ------------------------------------------------------------------

    def _cmd_start_scan(self, cmd: Dict) -> None:
        self._registry.start_scan(hm10_only=cmd.get('hm10_only', False))

    def _cmd_stop_scan(self, cmd: Dict) -> None:
        self._registry.stop_scan()

    def _cmd_connect(self, cmd: Dict) -> None:
        """Connect to a peripheral from the discovery set.

        Expected command dict::

            {'action': 'connect', 'identifier': 'AA:BB:CC:DD:EE:FF'}
        """
        identifier = cmd.get('identifier', '')
        peripheral: Optional[PeripheralHandle] = self._registry.get(identifier)
        if peripheral is None:
            self._shared.set_status(f"Unknown device: {identifier}")
            return
        self._session.connect(peripheral)

    def _cmd_disconnect(self, cmd: Dict) -> None:
        self._cancel_query()
        self._session.disconnect()

    def _cmd_send(self, cmd: Dict) -> None:
        text = cmd.get('text', '')
        if not text:
            return
        self._traffic.send(text)

    def _cmd_query_device_info(self, cmd: Dict) -> None:
        """Send the HM-10 info queries one by one.

        The module answers each query with an ``OK+…`` line, which the
        event handler folds into the device info shown in the GUI.
        """
        if not self._traffic.is_bound:
            raise NotReady("Not connected or write characteristic not found.")
        self._cancel_query()
        self._query_task = asyncio.get_running_loop().create_task(
            self._query_device_info()
        )

    async def _query_device_info(self) -> None:
        for command in HM10_INFO_QUERY_COMMANDS:
            try:
                self._traffic.send_at_command(command)
            except HM10Error as exc:
                self._shared.set_status(str(exc))
                debug_print(f"Device info query stopped at {command}: {exc}")
                return
            await asyncio.sleep(HM10_QUERY_INTERVAL)
        debug_print("Device info queries sent")

    def _cancel_query(self) -> None:
        if self._query_task is not None and not self._query_task.done():
            self._query_task.cancel()
        self._query_task = None
