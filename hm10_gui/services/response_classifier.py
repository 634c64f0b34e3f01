"""
HM-10 response classification.

Maps one line of module output to a semantic category so the console
can colour and filter it.  ``classify`` is total and side-effect free;
other components rely on its categories as a contract:

============  =======================  ==============================
Category      Rule                     Display text
============  =======================  ==============================
success       exactly ``OK``           ``Command executed successfully``
error         exactly ``ERROR``        ``Command failed``
info          prefix ``OK+``           the line itself
echo          prefix ``AT+``           ``Echo: <line>``
data          anything else            the trimmed line
============  =======================  ==============================
"""

from dataclasses import dataclass
from enum import Enum


class ResponseCategory(Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    ECHO = "echo"
    DATA = "data"

    @property
    def color(self) -> str:
        return _COLORS[self]

    @property
    def icon(self) -> str:
        return _ICONS[self]


_COLORS = {
    ResponseCategory.SUCCESS: "text-green-600",
    ResponseCategory.ERROR: "text-red-600",
    ResponseCategory.INFO: "text-blue-600",
    ResponseCategory.ECHO: "text-gray-500",
    ResponseCategory.DATA: "text-gray-900",
}

_ICONS = {
    ResponseCategory.SUCCESS: "✅",
    ResponseCategory.ERROR: "❌",
    ResponseCategory.INFO: "ℹ️",
    ResponseCategory.ECHO: "🔁",
    ResponseCategory.DATA: "💬",
}


@dataclass(frozen=True)
class ClassifiedLine:
    category: ResponseCategory
    display_text: str


def classify(line: str) -> ClassifiedLine:
    """Classify a raw line of HM-10 output."""
    trimmed = line.strip()

    if trimmed == "OK":
        return ClassifiedLine(ResponseCategory.SUCCESS, "Command executed successfully")
    if trimmed == "ERROR":
        return ClassifiedLine(ResponseCategory.ERROR, "Command failed")
    if trimmed.startswith("OK+"):
        return ClassifiedLine(ResponseCategory.INFO, trimmed)
    if trimmed.startswith("AT+"):
        return ClassifiedLine(ResponseCategory.ECHO, f"Echo: {trimmed}")
    return ClassifiedLine(ResponseCategory.DATA, trimmed)
