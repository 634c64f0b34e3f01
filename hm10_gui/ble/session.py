"""
BLE session state machine for HM-10 GUI.

Owns the connection lifecycle of the single active peripheral::

    idle ─connect()─▶ connecting ─connected─▶ discoveringServices
        ─servicesDiscovered─▶ discoveringCharacteristics ─(fan-in)─▶ ready

    connecting ─connectFailed─▶ failed        (a new connect() is accepted)
    any ─disconnect()/disconnected/radio off─▶ disconnecting / idle

Characteristic selection: the first writable characteristic is kept
unless a later one supports write-with-response and the kept one does
not; the first notify-capable characteristic is kept and subscribed to
immediately.  ``ready`` is entered once both channels are bound *and*
every per-service characteristic callback has arrived, so the
with-response preference holds for any arrival order.

Every radio event is checked against the identity of the session's
peripheral first.  Radio stacks deliver late callbacks for peripherals
the session has already moved away from, and those must not touch the
current state.

All methods run on the BLE worker's event loop; nothing here blocks.
"""

from typing import List, Optional, Sequence, Set

from hm10_gui.config import (
    HM10_CHARACTERISTIC_UUID,
    HM10_NAME_HINTS,
    HM10_SERVICE_UUID,
    debug_data,
    debug_print,
)
from hm10_gui.core.errors import (
    ConnectFailed,
    DiscoveryFailed,
    HM10Error,
    RadioUnavailable,
)
from hm10_gui.core.models import (
    POWER_STATUS_TEXT,
    UNRESOLVED,
    CharacteristicBinding,
    CharacteristicInfo,
    ConnectionState,
    PeripheralHandle,
    RadioPowerState,
    ServiceInfo,
)
from hm10_gui.core.protocols import RadioAdapter, SharedDataWriter
from hm10_gui.ble.registry import DeviceRegistry
from hm10_gui.ble.traffic import TrafficMultiplexer


class SessionStateMachine:
    """Connection lifecycle, GATT resolution and channel selection.

    Args:
        adapter:  RadioAdapter receiving connect/discover/notify calls.
        shared:   SharedDataWriter for status and observable state.
        registry: DeviceRegistry (scanning stops once connected).
        traffic:  TrafficMultiplexer bound on ``ready``.
    """

    def __init__(
        self,
        adapter: RadioAdapter,
        shared: SharedDataWriter,
        registry: DeviceRegistry,
        traffic: TrafficMultiplexer,
    ) -> None:
        self._adapter = adapter
        self._shared = shared
        self._registry = registry
        self._traffic = traffic

        self.state = ConnectionState.IDLE
        self.power_state = RadioPowerState.UNKNOWN
        self.binding: CharacteristicBinding = UNRESOLVED
        self.failure: Optional[HM10Error] = None

        self._peripheral: Optional[PeripheralHandle] = None
        self._connected = False
        self._services: List[ServiceInfo] = []
        self._pending_services: Set[str] = set()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def peripheral(self) -> Optional[PeripheralHandle]:
        """Peripheral targeted by the session (connecting or connected)."""
        return self._peripheral

    @property
    def active_peripheral(self) -> Optional[PeripheralHandle]:
        """Peripheral with an established link, or None."""
        return self._peripheral if self._connected else None

    @property
    def is_connected_to_hm10(self) -> bool:
        """Heuristic: FFE0 among the services, else an HM-10-like name."""
        peripheral = self.active_peripheral
        if peripheral is None:
            return False
        if self._services:
            return any(s.uuid == HM10_SERVICE_UUID for s in self._services)
        name = (peripheral.name or "").lower()
        return any(hint in name for hint in HM10_NAME_HINTS)

    @property
    def has_hm10_characteristics(self) -> bool:
        write = self.binding.write
        return write is not None and write.uuid == HM10_CHARACTERISTIC_UUID

    def accepts(self, peripheral_id: str) -> bool:
        """True if an event for *peripheral_id* belongs to this session."""
        return (
            self._peripheral is not None
            and self._peripheral.identifier == peripheral_id
            and not self.state.accepts_connect
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def connect(self, peripheral: PeripheralHandle) -> None:
        """Start connecting to *peripheral*.

        A request for the peripheral already being connected is a
        no-op; a request for a different one tears the current session
        down first.

        Raises:
            RadioUnavailable: the radio is not powered on.
        """
        if self.power_state is not RadioPowerState.POWERED_ON:
            raise RadioUnavailable("Bluetooth is not powered on. Cannot connect.")

        current = self._peripheral
        if current is not None and not self.state.accepts_connect:
            if current.identifier == peripheral.identifier:
                if self.state is ConnectionState.DISCONNECTING:
                    self._shared.set_status(
                        f"Still disconnecting from {current.display_name}. "
                        "Please try again."
                    )
                else:
                    debug_print(
                        f"connect({peripheral.identifier}) ignored: "
                        f"already {self.state.value}"
                    )
                return
            debug_print(
                f"Tearing down {current.identifier} ({self.state.value}) "
                f"before connecting to {peripheral.identifier}"
            )
            self._adapter.cancel_connection(current.identifier)
            self._reset()

        self._peripheral = peripheral
        self.failure = None
        self._set_state(ConnectionState.CONNECTING)
        self._shared.set_status(f"Connecting to {peripheral.display_name}...")
        print(f"BLE: Connecting to {peripheral.display_name} ({peripheral.identifier})")
        self._adapter.connect(peripheral.identifier)

    def disconnect(self) -> None:
        """Request a disconnect of the current session, whatever its stage."""
        peripheral = self._peripheral
        if peripheral is None or self.state.accepts_connect:
            self._shared.set_status("No device connected to disconnect.")
            return
        if self.state is ConnectionState.DISCONNECTING:
            return

        self._set_binding(UNRESOLVED)
        self._traffic.unbind()
        self._set_state(ConnectionState.DISCONNECTING)
        self._shared.set_status(f"Disconnecting from {peripheral.display_name}...")
        self._adapter.cancel_connection(peripheral.identifier)

    # ------------------------------------------------------------------
    # Radio events
    # ------------------------------------------------------------------

    def on_power_state_changed(self, state: RadioPowerState) -> None:
        """A radio that is not powered on cannot sustain a GATT session."""
        self.power_state = state
        self._shared.set_power_state(state)

        if state is not RadioPowerState.POWERED_ON and self._peripheral is not None:
            print(f"BLE: Radio {state.value} — dropping session")
            self._adapter.cancel_connection(self._peripheral.identifier)
            self._reset()
        self._shared.set_status(POWER_STATUS_TEXT[state])

    def on_connected(self, peripheral_id: str) -> None:
        if not self._expects(peripheral_id, ConnectionState.CONNECTING, "connected"):
            return

        self._connected = True
        name = self._peripheral.display_name
        self._set_state(ConnectionState.DISCOVERING_SERVICES)
        self._registry.stop_scan(update_status=False)
        self._shared.set_status(f"Connected to {name}. Discovering services...")
        print(f"BLE: Connected to {name}")
        self._adapter.discover_services(peripheral_id)

    def on_connect_failed(self, peripheral_id: str, error: Optional[str]) -> None:
        if not self._expects(peripheral_id, ConnectionState.CONNECTING, "connectFailed"):
            return

        failure = ConnectFailed(self._peripheral.display_name, error)
        print(f"BLE: ❌ {failure}")
        self._reset(ConnectionState.FAILED)
        self.failure = failure
        self._shared.set_status(str(failure))

    def on_disconnected(self, peripheral_id: str, error: Optional[str]) -> None:
        if not self.accepts(peripheral_id):
            debug_print(f"Stale disconnected event for {peripheral_id} ignored")
            return

        name = self._peripheral.display_name
        message = f"Disconnected from {name}"
        if error:
            message += f". Error: {error}"
            print(f"BLE: ⚠️  {message}")
        else:
            print(f"BLE: Disconnected from {name} (clean disconnect)")

        self._reset()
        self._registry.stop_scan(update_status=False)
        self._shared.set_status(message)

    def on_services_discovered(
        self,
        peripheral_id: str,
        services: Sequence[ServiceInfo],
        error: Optional[str],
    ) -> None:
        if not self._expects(
            peripheral_id, ConnectionState.DISCOVERING_SERVICES, "servicesDiscovered",
        ):
            return

        name = self._peripheral.display_name
        if error:
            self._fail_discovery(f"Error discovering services for {name}: {error}")
            return

        if not services:
            self._shared.set_status(
                f"No services found on {name}. "
                "Ensure the device is advertising correctly."
            )
            return

        self._services = list(services)
        self._pending_services = {s.uuid for s in services}
        self._set_binding(UNRESOLVED)
        self._set_state(ConnectionState.DISCOVERING_CHARACTERISTICS)
        self._shared.set_status(
            f"Services discovered for {name}. Discovering characteristics..."
        )
        debug_print(
            f"Services on {name}: {', '.join(s.uuid for s in services)}"
        )

        for service in services:
            self._adapter.discover_characteristics(peripheral_id, service.uuid)

    def on_characteristics_discovered(
        self,
        peripheral_id: str,
        service_uuid: str,
        characteristics: Sequence[CharacteristicInfo],
        error: Optional[str],
    ) -> None:
        if not self._expects(
            peripheral_id,
            ConnectionState.DISCOVERING_CHARACTERISTICS,
            "characteristicsDiscovered",
        ):
            return

        name = self._peripheral.display_name
        self._pending_services.discard(service_uuid)

        if error:
            self._fail_discovery(
                f"Error discovering characteristics for service "
                f"{service_uuid} on {name}: {error}",
                service_uuid,
            )
            self._check_fan_in()
            return

        if not characteristics:
            self._shared.set_status(
                f"No characteristics found for service {service_uuid} on {name}."
            )
            self._check_fan_in()
            return

        debug_data(
            f"Characteristics for {service_uuid}",
            [{'uuid': c.uuid, 'properties': sorted(c.properties)} for c in characteristics],
        )

        binding = self.binding
        for characteristic in characteristics:
            binding = binding.offer_write(characteristic)
            had_notify = binding.has_notify
            binding = binding.offer_notify(characteristic)
            if not had_notify and binding.has_notify:
                debug_print(f"Subscribing to {characteristic.uuid}")
                self._adapter.set_notify(peripheral_id, characteristic.uuid, True)
        self._set_binding(binding)

        if binding.is_resolved:
            self._shared.set_status(
                f"Write and notify characteristics found on {name}. "
                "Finishing discovery..."
            )
        elif binding.has_write:
            self._shared.set_status(
                f"Device {name} partially ready: Write characteristic found. "
                "Still seeking notify."
            )
        elif binding.has_notify:
            self._shared.set_status(
                f"Device {name} partially ready: Notify characteristic found. "
                "Still seeking write."
            )
        else:
            self._shared.set_status(
                f"Found characteristics for service {service_uuid} on {name}, "
                "but not the required W/N ones yet."
            )
        self._check_fan_in()

    def on_notify_state_changed(
        self,
        peripheral_id: str,
        characteristic_uuid: str,
        is_notifying: bool,
        error: Optional[str],
    ) -> None:
        """Subscription outcome.  Failures never change the connection state."""
        if not self.accepts(peripheral_id):
            debug_print(f"Stale notify-state event for {peripheral_id} ignored")
            return

        name = self._peripheral.display_name
        if error:
            self._shared.set_status(
                f"Error changing notification state for {characteristic_uuid} "
                f"on {name}: {error}"
            )
            return

        notify = self.binding.notify
        if notify is None or notify.uuid != characteristic_uuid:
            return
        if is_notifying:
            self._shared.set_status(
                f"Subscribed to notifications. Ready to receive data from {name}."
            )
        else:
            self._shared.set_status(f"Unsubscribed from notifications for {name}.")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _expects(self, peripheral_id: str, state: ConnectionState, kind: str) -> bool:
        """Identity + state guard for lifecycle events."""
        if not self.accepts(peripheral_id):
            debug_print(f"Stale {kind} event for {peripheral_id} ignored")
            return False
        if self.state is not state:
            debug_print(f"{kind} event ignored in state {self.state.value}")
            return False
        return True

    def _check_fan_in(self) -> None:
        """Enter ``ready`` once both channels are bound and no service is pending."""
        if self._pending_services:
            return
        name = self._peripheral.display_name
        if not self.binding.is_resolved:
            self._shared.set_status(
                f"No usable write/notify characteristic pair found on {name}."
            )
            return

        self._set_state(ConnectionState.READY)
        self._traffic.bind(self._peripheral, self.binding)
        self._shared.set_status(
            f"Device {name} ready: Write and notify characteristics found."
        )
        print(
            f"BLE: ✅ {name} ready — write {self.binding.write.uuid} "
            f"({self.binding.write_mode.value}), notify {self.binding.notify.uuid}"
        )

    def _fail_discovery(self, description: str, service_id: Optional[str] = None) -> None:
        self.failure = DiscoveryFailed(description, service_id)
        self._shared.set_status(description)
        print(f"BLE: ⚠️  {description}")

    def _set_state(self, state: ConnectionState) -> None:
        if state is not self.state:
            debug_print(f"Connection state: {self.state.value} → {state.value}")
        self.state = state
        self._shared.set_connection(state, self.active_peripheral)
        self._publish_detection()

    def _set_binding(self, binding: CharacteristicBinding) -> None:
        self.binding = binding
        self._shared.set_binding(binding)
        self._publish_detection()

    def _publish_detection(self) -> None:
        self._shared.set_hm10_detection(
            self.is_connected_to_hm10, self.has_hm10_characteristics,
        )

    def _reset(self, state: ConnectionState = ConnectionState.IDLE) -> None:
        """Drop the peripheral, its services and the binding."""
        self._peripheral = None
        self._connected = False
        self._services = []
        self._pending_services = set()
        self._traffic.unbind()
        self._set_binding(UNRESOLVED)
        self._set_state(state)
