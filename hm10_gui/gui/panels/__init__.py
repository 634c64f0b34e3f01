"""
Individual dashboard panels — each panel is a single-responsibility class.

Re-exports all panels for convenient importing::

    from hm10_gui.gui.panels import DevicePanel, ConsolePanel, ...
"""

from hm10_gui.gui.panels.device_list_panel import DeviceListPanel  # noqa: F401
from hm10_gui.gui.panels.device_panel import DevicePanel            # noqa: F401
from hm10_gui.gui.panels.console_panel import ConsolePanel          # noqa: F401
from hm10_gui.gui.panels.messages_panel import MessagesPanel        # noqa: F401
