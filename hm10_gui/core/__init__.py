"""
Core domain layer: models, events, errors, protocols and shared data store.

Re-exports the most commonly used names so consumers can write::

    from hm10_gui.core import SharedData, PeripheralHandle, ConnectionState
"""

from hm10_gui.core.models import (  # noqa: F401
    CharacteristicBinding,
    CharacteristicInfo,
    ConnectionState,
    Direction,
    HM10DeviceInfo,
    MessageLogEntry,
    PeripheralHandle,
    RadioPowerState,
    ServiceInfo,
    WriteMode,
)
from hm10_gui.core.shared_data import SharedData  # noqa: F401
