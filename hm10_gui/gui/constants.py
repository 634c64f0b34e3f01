"""
Display constants for the GUI layer.

Connection state and radio power → icon/label mappings used by
multiple panels.
"""

from typing import Dict

from hm10_gui.core.models import ConnectionState, RadioPowerState

STATE_ICONS: Dict[ConnectionState, str] = {
    ConnectionState.IDLE: "⚪",
    ConnectionState.CONNECTING: "🔄",
    ConnectionState.DISCOVERING_SERVICES: "🔍",
    ConnectionState.DISCOVERING_CHARACTERISTICS: "🔍",
    ConnectionState.READY: "🟢",
    ConnectionState.DISCONNECTING: "⏏️",
    ConnectionState.FAILED: "🔴",
}

STATE_LABELS: Dict[ConnectionState, str] = {
    ConnectionState.IDLE: "Not connected",
    ConnectionState.CONNECTING: "Connecting",
    ConnectionState.DISCOVERING_SERVICES: "Discovering services",
    ConnectionState.DISCOVERING_CHARACTERISTICS: "Discovering characteristics",
    ConnectionState.READY: "Ready",
    ConnectionState.DISCONNECTING: "Disconnecting",
    ConnectionState.FAILED: "Connection failed",
}

POWER_ICONS: Dict[RadioPowerState, str] = {
    RadioPowerState.POWERED_ON: "🔵",
    RadioPowerState.POWERED_OFF: "⚫",
    RadioPowerState.RESETTING: "🔄",
    RadioPowerState.UNSUPPORTED: "🚫",
    RadioPowerState.UNAUTHORIZED: "🔒",
    RadioPowerState.UNKNOWN: "❔",
}
