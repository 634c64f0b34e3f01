"""Domain-specific errors for HM-10 GUI.

None of these escape to the user as a crash: synchronous commands raise
them and the command handler turns ``str(exc)`` into status text, while
asynchronous failures are kept on the session as values.
"""

from typing import Optional


class HM10Error(Exception):
    """Base error for hm10_gui."""


class RadioUnavailable(HM10Error):
    """Raised when scanning/connecting while the radio is not powered on."""


class ConnectFailed(HM10Error):
    """Radio-reported connection failure."""

    def __init__(self, peripheral_name: str, description: Optional[str] = None) -> None:
        self.peripheral_name = peripheral_name
        self.description = description or "Unknown error"
        super().__init__(
            f"Failed to connect to {peripheral_name}: {self.description}. "
            "Please try again."
        )


class DiscoveryFailed(HM10Error):
    """Service or characteristic enumeration error.

    ``service_id`` is set when the failure is scoped to one service.
    """

    def __init__(self, description: str, service_id: Optional[str] = None) -> None:
        self.description = description
        self.service_id = service_id
        super().__init__(description)


class NotReady(HM10Error):
    """Raised when sending before a write channel is bound."""


class EncodingError(HM10Error):
    """Raised when text cannot be encoded for transmission."""


class InvalidCommand(HM10Error):
    """Raised when text passed as an AT command does not start with ``AT``."""
