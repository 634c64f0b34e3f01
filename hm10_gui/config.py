"""
Application configuration for HM-10 GUI.

Contains only global runtime settings and the HM-10 module constants.
Display constants live in :mod:`hm10_gui.gui.constants`.

The ``DEBUG`` flag defaults to False and can be activated at startup
with the ``--debug-on`` command-line option.

Debug output is written to both stdout and a rotating log file at
``~/.hm10-gui/logs/hm10_gui.log``.
"""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, List, Tuple


# ==============================================================================
# VERSION
# ==============================================================================

VERSION: str = "1.0.0"


# ==============================================================================
# DIRECTORY STRUCTURE
# ==============================================================================

# Base data directory.  Nothing is persisted here except log files.
DATA_DIR: Path = Path.home() / ".hm10-gui"

# Log directory for debug log files.
LOG_DIR: Path = DATA_DIR / "logs"

# Log file path (rotating: max 5 MB per file, 3 backups = 20 MB total).
LOG_FILE: Path = LOG_DIR / "hm10_gui.log"

# Maximum size per log file in bytes (5 MB).
LOG_MAX_BYTES: int = 5 * 1024 * 1024

# Number of rotated backup files to keep.
LOG_BACKUP_COUNT: int = 3


# ==============================================================================
# DEBUG
# ==============================================================================

DEBUG: bool = False

# Internal file logger, initialised lazily on first debug_print() call.
_file_logger: logging.Logger | None = None


def _init_file_logger() -> logging.Logger:
    """Create and configure the rotating file logger (called once)."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("hm10_gui.debug")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter("%(asctime)s  %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )
    logger.addHandler(handler)
    return logger


def _caller_module() -> str:
    """Return a short module label for the calling code.

    Walks two frames up (debug_print -> caller) and extracts the
    module ``__name__``.  The common ``hm10_gui.`` prefix is stripped
    for brevity, e.g. ``ble.session`` instead of ``hm10_gui.ble.session``.
    """
    frame = sys._getframe(2)  # 0=_caller_module, 1=debug_print, 2=actual caller
    module = frame.f_globals.get("__name__", "<unknown>")
    if module.startswith("hm10_gui."):
        module = module[len("hm10_gui."):]
    return module


def _init_bleak_logger() -> None:
    """Route bleak library debug output to our rotating log file.

    bleak logs through ``logging.getLogger("bleak")`` but never attaches
    a handler, so without this its output (scanner backends, GATT
    resolution, D-Bus traffic) is dropped below WARNING.
    """
    if not BLE_LIB_DEBUG:
        return

    LOG_DIR.mkdir(parents=True, exist_ok=True)

    bleak_logger = logging.getLogger("bleak")
    # Guard against duplicate handlers on repeated calls
    if any(isinstance(h, RotatingFileHandler) for h in bleak_logger.handlers):
        return

    bleak_logger.setLevel(logging.DEBUG)
    handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s  LIB [%(name)s]: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    bleak_logger.addHandler(handler)


def debug_print(msg: str) -> None:
    """Print a debug message when ``DEBUG`` is enabled.

    Output goes to both stdout and the rotating log file.
    The calling module name is automatically included, e.g.::

        DEBUG [ble.session]: characteristics for 0000ffe0-...: 1 found
    """
    global _file_logger

    if not DEBUG:
        return

    module = _caller_module()
    formatted = f"DEBUG [{module}]: {msg}"

    print(formatted)

    if _file_logger is None:
        _file_logger = _init_file_logger()
        _init_bleak_logger()
    _file_logger.debug(formatted)


def pp(obj: Any, indent: int = 2) -> str:
    """Pretty-format a dict, list, or other object for debug output.

    Dicts/lists get indented JSON; everything else falls back to repr().
    """
    if isinstance(obj, (dict, list)):
        try:
            return json.dumps(obj, indent=indent, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            return repr(obj)
    return repr(obj)


def debug_data(label: str, obj: Any) -> None:
    """Print a labelled data structure with pretty indentation."""
    if not DEBUG:
        return
    formatted = pp(obj)
    if '\n' not in formatted:
        debug_print(f"{label}: {formatted}")
    else:
        indented = '\n'.join(f"  {line}" for line in formatted.splitlines())
        debug_print(f"{label} ↓\n{indented}")


# ==============================================================================
# HM-10 MODULE
# ==============================================================================

# Standard HM-10 service and characteristic (16-bit FFE0 / FFE1 expanded
# to the 128-bit form bleak reports).  FFE1 carries both TX and RX.
HM10_SERVICE_UUID: str = "0000ffe0-0000-1000-8000-00805f9b34fb"
HM10_CHARACTERISTIC_UUID: str = "0000ffe1-0000-1000-8000-00805f9b34fb"

# Quick-access AT commands shown in the console panel.
HM10_COMMON_COMMANDS: Tuple[str, ...] = (
    "AT",           # Test command
    "AT+ROLE?",     # Query role (Master/Slave)
    "AT+ADDR?",     # Query MAC address
    "AT+NAME?",     # Query device name
    "AT+BAUD?",     # Query baud rate
    "AT+VERS?",     # Query firmware version
    "AT+HELP",      # Show available commands
    "AT+RESET",     # Reset module
)

# Commands sent by the "query device info" action, in order.
HM10_INFO_QUERY_COMMANDS: List[str] = [
    "AT+NAME?", "AT+ROLE?", "AT+VERS?", "AT+BAUD?", "AT+ADDR?",
]

# Seconds between consecutive info queries so the module is not flooded.
HM10_QUERY_INTERVAL: float = 0.5

# Lower-case name fragments that identify an HM-10 clone when the
# FFE0 service has not been discovered.
HM10_NAME_HINTS: Tuple[str, ...] = ("hm", "ble", "at09")

# When True, scans filter on HM10_SERVICE_UUID (``--hm10-only``).
SCAN_HM10_ONLY: bool = False


# ==============================================================================
# SESSION / BLE
# ==============================================================================

# Maximum number of entries in the message log (oldest evicted first).
MESSAGE_LOG_MAX: int = 100

# Maximum number of entries in the command history.
COMMAND_HISTORY_MAX: int = 20

# Connect deadline passed to bleak.  A timeout surfaces as a regular
# connect failure; the session itself has no timers.
BLE_CONNECT_TIMEOUT: float = 10.0

# Route bleak's own logger into the debug log file.
BLE_LIB_DEBUG: bool = True

# BlueZ adapter queried for radio power state (Linux only).
BLUEZ_ADAPTER: str = "hci0"

# Seconds between worker loop iterations (command + event draining).
WORKER_POLL_INTERVAL: float = 0.05


# ==============================================================================
# WEB SERVER
# ==============================================================================

# Default NiceGUI port (``--port=``).
PORT: int = 8081
