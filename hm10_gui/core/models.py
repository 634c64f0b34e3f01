"""
Domain model for HM-10 GUI.

Typed enums and dataclasses for the BLE session: radio power, peripheral
handles, GATT services/characteristics, the characteristic binding and
the message log.  Everything that crosses the worker/GUI thread boundary
is either immutable (frozen) or copied by :class:`SharedData`.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, FrozenSet, Optional


# ---------------------------------------------------------------------------
# Radio power
# ---------------------------------------------------------------------------

class RadioPowerState(Enum):
    """Power/availability state of the local Bluetooth radio."""

    UNKNOWN = "unknown"
    RESETTING = "resetting"
    UNSUPPORTED = "unsupported"
    UNAUTHORIZED = "unauthorized"
    POWERED_OFF = "poweredOff"
    POWERED_ON = "poweredOn"


# Status text shown for each power state transition.
POWER_STATUS_TEXT = {
    RadioPowerState.POWERED_ON: "Bluetooth is On. Ready to scan.",
    RadioPowerState.POWERED_OFF: "Bluetooth is Off. Please turn it on.",
    RadioPowerState.UNSUPPORTED: "Bluetooth is not supported on this device.",
    RadioPowerState.UNAUTHORIZED: (
        "Bluetooth access denied. Please enable it in Settings for this app."
    ),
    RadioPowerState.RESETTING: "Bluetooth is resetting. Please wait.",
    RadioPowerState.UNKNOWN: "Bluetooth state is unknown.",
}


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------

class ConnectionState(Enum):
    """Lifecycle of the single active connection.

    ``FAILED`` is terminal-but-recoverable: the reason is kept on the
    session and a new ``connect()`` is accepted from it.
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    DISCOVERING_SERVICES = "discoveringServices"
    DISCOVERING_CHARACTERISTICS = "discoveringCharacteristics"
    READY = "ready"
    DISCONNECTING = "disconnecting"
    FAILED = "failed"

    @property
    def accepts_connect(self) -> bool:
        """True if a new connection may start without a teardown."""
        return self in (ConnectionState.IDLE, ConnectionState.FAILED)


class WriteMode(Enum):
    """Whether the peripheral acknowledges a write at protocol level."""

    WITH_RESPONSE = "withResponse"
    WITHOUT_RESPONSE = "withoutResponse"


# ---------------------------------------------------------------------------
# Peripheral / GATT
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PeripheralHandle:
    """A discovered peripheral.

    Attributes:
        identifier: Stable identity (BLE address or platform UUID).
        name:       Advertised name, if any.
        ref:        Opaque radio-stack object used by the adapter
                    (e.g. a ``bleak`` ``BLEDevice``).  Excluded from
                    equality so identity alone decides.
    """

    identifier: str
    name: Optional[str] = None
    ref: Any = field(default=None, compare=False, repr=False)

    @property
    def display_name(self) -> str:
        return self.name or "Unknown Device"


@dataclass(frozen=True)
class ServiceInfo:
    uuid: str


# Characteristic property names (as reported by bleak).
PROP_WRITE = "write"
PROP_WRITE_WITHOUT_RESPONSE = "write-without-response"
PROP_NOTIFY = "notify"


@dataclass(frozen=True)
class CharacteristicInfo:
    """A GATT characteristic reference.

    Attributes:
        uuid:         Characteristic UUID (lower-case, 128-bit form).
        service_uuid: Owning service UUID.
        properties:   Property names, see ``PROP_*``.
    """

    uuid: str
    service_uuid: str
    properties: FrozenSet[str] = frozenset()

    @property
    def supports_write(self) -> bool:
        return PROP_WRITE in self.properties

    @property
    def supports_write_without_response(self) -> bool:
        return PROP_WRITE_WITHOUT_RESPONSE in self.properties

    @property
    def is_writable(self) -> bool:
        return self.supports_write or self.supports_write_without_response

    @property
    def is_notifiable(self) -> bool:
        return PROP_NOTIFY in self.properties


@dataclass(frozen=True)
class CharacteristicBinding:
    """Resolved write/notify channels of the active peripheral.

    Instances are immutable; the session replaces its binding as
    discovery callbacks arrive.  :data:`UNRESOLVED` is the explicit
    "nothing bound yet" variant.
    """

    write: Optional[CharacteristicInfo] = None
    notify: Optional[CharacteristicInfo] = None

    @property
    def write_mode(self) -> WriteMode:
        if self.write is not None and self.write.supports_write:
            return WriteMode.WITH_RESPONSE
        return WriteMode.WITHOUT_RESPONSE

    @property
    def has_write(self) -> bool:
        return self.write is not None

    @property
    def has_notify(self) -> bool:
        return self.notify is not None

    @property
    def is_resolved(self) -> bool:
        return self.write is not None and self.notify is not None

    def offer_write(self, candidate: CharacteristicInfo) -> "CharacteristicBinding":
        """Return the binding with *candidate* considered as write channel.

        The first writable characteristic is kept unless *candidate*
        supports write-with-response and the kept one does not.
        """
        if not candidate.is_writable:
            return self
        if self.write is None or (
            candidate.supports_write and not self.write.supports_write
        ):
            return CharacteristicBinding(write=candidate, notify=self.notify)
        return self

    def offer_notify(self, candidate: CharacteristicInfo) -> "CharacteristicBinding":
        """Return the binding with *candidate* as notify channel if none is bound."""
        if self.notify is None and candidate.is_notifiable:
            return CharacteristicBinding(write=self.write, notify=candidate)
        return self


UNRESOLVED = CharacteristicBinding()


# ---------------------------------------------------------------------------
# Message log
# ---------------------------------------------------------------------------

class Direction(Enum):
    SENT = "sent"
    RECEIVED = "received"


@dataclass(frozen=True)
class MessageLogEntry:
    """One line of traffic with the peripheral.

    Attributes:
        direction: Sent or received.
        text:      Payload text; hex digits when ``is_hex`` is set.
        is_hex:    True when received bytes were not valid UTF-8 and are
                   preserved as a hexadecimal string instead.
        time:      Formatted timestamp (HH:MM:SS).
    """

    direction: Direction
    text: str
    is_hex: bool = False
    time: str = ""

    @staticmethod
    def now_timestamp() -> str:
        """Current time formatted as ``HH:MM:SS``."""
        return datetime.now().strftime('%H:%M:%S')

    @classmethod
    def sent(cls, text: str) -> "MessageLogEntry":
        return cls(Direction.SENT, text, time=cls.now_timestamp())

    @classmethod
    def received(cls, text: str, *, is_hex: bool = False) -> "MessageLogEntry":
        return cls(Direction.RECEIVED, text, is_hex=is_hex, time=cls.now_timestamp())

    def format_line(self) -> str:
        """Format as a single console line, e.g. ``12:34:56 ← OK+NAME:HMSoft``."""
        arrow = '→' if self.direction is Direction.SENT else '←'
        label = '(hex) ' if self.is_hex else ''
        return f"{self.time} {arrow} {label}{self.text}"


# ---------------------------------------------------------------------------
# HM-10 device info
# ---------------------------------------------------------------------------

@dataclass
class HM10DeviceInfo:
    """Module details learned from ``OK+…`` responses to AT queries.

    Attributes:
        name:        Module name (``OK+NAME:``).
        role:        ``'Slave'`` or ``'Master'`` (``OK+ROLE:``).
        version:     Firmware version (``OK+VERS:``).
        baud_rate:   Baud rate code (``OK+BAUD:``).
        mac_address: Module MAC address (``OK+ADDR:``).
    """

    name: Optional[str] = None
    role: Optional[str] = None
    version: Optional[str] = None
    baud_rate: Optional[str] = None
    mac_address: Optional[str] = None
