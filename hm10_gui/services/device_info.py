"""HM-10 module info extraction from ``OK+…`` query responses."""

from hm10_gui.core.models import HM10DeviceInfo

_FIELDS = {
    "OK+NAME:": "name",
    "OK+VERS:": "version",
    "OK+BAUD:": "baud_rate",
    "OK+ADDR:": "mac_address",
}


def apply_at_response(info: HM10DeviceInfo, response: str) -> bool:
    """Update *info* in place from one response line.

    Returns True if the line carried a recognised field.
    """
    trimmed = response.strip()

    if trimmed.startswith("OK+ROLE:"):
        info.role = "Slave" if trimmed[8:] == "0" else "Master"
        return True

    for prefix, attr in _FIELDS.items():
        if trimmed.startswith(prefix):
            setattr(info, attr, trimmed[len(prefix):])
            return True
    return False
