"""
Radio events delivered by a :class:`~hm10_gui.core.protocols.RadioAdapter`.

Each event kind is a frozen dataclass; :data:`RadioEvent` is their union.
:class:`hm10_gui.ble.events.EventHandler` dispatches on the concrete type,
so there is exactly one handler per event kind.

``error`` fields carry a human-readable description, or ``None`` on
success.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from hm10_gui.core.models import (
    CharacteristicInfo,
    PeripheralHandle,
    RadioPowerState,
    ServiceInfo,
)


@dataclass(frozen=True)
class PowerStateChanged:
    state: RadioPowerState


@dataclass(frozen=True)
class PeripheralDiscovered:
    peripheral: PeripheralHandle


@dataclass(frozen=True)
class Connected:
    peripheral_id: str


@dataclass(frozen=True)
class ConnectionFailed:
    peripheral_id: str
    error: Optional[str] = None


@dataclass(frozen=True)
class Disconnected:
    """Link closed.  ``error`` is None for a requested (clean) disconnect."""

    peripheral_id: str
    error: Optional[str] = None


@dataclass(frozen=True)
class ServicesDiscovered:
    peripheral_id: str
    services: Tuple[ServiceInfo, ...] = ()
    error: Optional[str] = None


@dataclass(frozen=True)
class CharacteristicsDiscovered:
    peripheral_id: str
    service_uuid: str
    characteristics: Tuple[CharacteristicInfo, ...] = ()
    error: Optional[str] = None


@dataclass(frozen=True)
class NotifyStateChanged:
    peripheral_id: str
    characteristic_uuid: str
    is_notifying: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class ValueUpdated:
    peripheral_id: str
    characteristic_uuid: str
    value: Optional[bytes]
    error: Optional[str] = None


@dataclass(frozen=True)
class WriteCompleted:
    """Only emitted for with-response writes, or for failed writes."""

    peripheral_id: str
    characteristic_uuid: str
    error: Optional[str] = None


RadioEvent = Union[
    PowerStateChanged,
    PeripheralDiscovered,
    Connected,
    ConnectionFailed,
    Disconnected,
    ServicesDiscovered,
    CharacteristicsDiscovered,
    NotifyStateChanged,
    ValueUpdated,
    WriteCompleted,
]
