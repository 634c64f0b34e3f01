"""
Radio event routing for HM-10 GUI.

The radio adapter posts typed events into the worker's mailbox; this
handler routes each one to the component that owns it.  Session-scoped
events are dropped when they do not belong to the session's current
peripheral, so late callbacks never leak into a newer session.
"""

from typing import Callable, Dict

from hm10_gui.config import debug_print
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
from hm10_gui.core.models import HM10DeviceInfo
from hm10_gui.core.protocols import SharedDataWriter
from hm10_gui.ble.registry import DeviceRegistry
from hm10_gui.ble.session import SessionStateMachine
from hm10_gui.ble.traffic import TrafficMultiplexer
from hm10_gui.services.device_info import apply_at_response


class EventHandler:
    """Dispatches radio events to registry, session and traffic.

    Args:
        session:  SessionStateMachine owning the connection lifecycle.
        registry: DeviceRegistry owning the discovery set.
        traffic:  TrafficMultiplexer owning inbound/outbound data.
        shared:   SharedDataWriter for status and device info.
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
        self._device_info = HM10DeviceInfo()

        self._handlers: Dict[type, Callable] = {
            PowerStateChanged: self._on_power_state,
            PeripheralDiscovered: self._on_discovered,
            Connected: self._on_connected,
            ConnectionFailed: self._on_connect_failed,
            Disconnected: self._on_disconnected,
            ServicesDiscovered: self._on_services,
            CharacteristicsDiscovered: self._on_characteristics,
            NotifyStateChanged: self._on_notify_state,
            ValueUpdated: self._on_value,
            WriteCompleted: self._on_write_completed,
        }

    def dispatch(self, event: RadioEvent) -> None:
        handler = self._handlers.get(type(event))
        if handler:
            handler(event)
        else:
            debug_print(f"Unknown radio event: {event!r}")

    def reset_device_info(self) -> None:
        self._device_info = HM10DeviceInfo()
        self._shared.set_device_info(self._device_info)

    # ------------------------------------------------------------------
    # Radio / discovery
    # ------------------------------------------------------------------

    def _on_power_state(self, event: PowerStateChanged) -> None:
        debug_print(f"Radio power state: {event.state.value}")
        self._registry.on_power_state_changed(event.state)
        self._session.on_power_state_changed(event.state)

    def _on_discovered(self, event: PeripheralDiscovered) -> None:
        self._registry.on_discovered(event.peripheral)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def _on_connected(self, event: Connected) -> None:
        self._session.on_connected(event.peripheral_id)
        if self._session.active_peripheral is not None:
            self.reset_device_info()

    def _on_connect_failed(self, event: ConnectionFailed) -> None:
        self._session.on_connect_failed(event.peripheral_id, event.error)

    def _on_disconnected(self, event: Disconnected) -> None:
        self._session.on_disconnected(event.peripheral_id, event.error)

    def _on_services(self, event: ServicesDiscovered) -> None:
        self._session.on_services_discovered(
            event.peripheral_id, event.services, event.error,
        )

    def _on_characteristics(self, event: CharacteristicsDiscovered) -> None:
        self._session.on_characteristics_discovered(
            event.peripheral_id,
            event.service_uuid,
            event.characteristics,
            event.error,
        )

    def _on_notify_state(self, event: NotifyStateChanged) -> None:
        self._session.on_notify_state_changed(
            event.peripheral_id,
            event.characteristic_uuid,
            event.is_notifying,
            event.error,
        )

    # ------------------------------------------------------------------
    # Traffic
    # ------------------------------------------------------------------

    def _on_value(self, event: ValueUpdated) -> None:
        if not self._session.accepts(event.peripheral_id):
            debug_print(f"Stale value from {event.peripheral_id} ignored")
            return

        name = self._session.peripheral.display_name
        if event.error:
            self._shared.set_status(
                f"Error receiving data from {name} on char "
                f"{event.characteristic_uuid}: {event.error}"
            )
            return
        if not event.value:
            self._shared.set_status(
                f"Received empty data packet from {name} on char "
                f"{event.characteristic_uuid}."
            )
            return

        entry = self._traffic.on_notification(event.value)
        if entry is None or entry.is_hex:
            return
        if apply_at_response(self._device_info, entry.text):
            self._shared.set_device_info(self._device_info)
            debug_print(f"HM-10 info updated from {entry.text!r}")

    def _on_write_completed(self, event: WriteCompleted) -> None:
        if not self._session.accepts(event.peripheral_id):
            debug_print(f"Stale write ack from {event.peripheral_id} ignored")
            return
        self._traffic.on_write_completed(event.error)
