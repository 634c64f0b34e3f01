"""
Console command history.

Bounded, most-recent-first list of previously sent commands with
shell-style up/down navigation.  Re-sending a command moves it to the
front instead of storing a duplicate.
"""

from collections import OrderedDict
from typing import List, Optional

from hm10_gui.config import COMMAND_HISTORY_MAX


class CommandHistory:
    """Bounded most-recent-first command store.

    Uses an :class:`OrderedDict` as an LRU-style bounded set; the
    newest command sits at the end of the dict.

    Args:
        max_size: Maximum number of commands to retain.
    """

    def __init__(self, max_size: int = COMMAND_HISTORY_MAX) -> None:
        self._max = max_size
        self._entries: OrderedDict[str, None] = OrderedDict()
        self._index = -1

    @property
    def entries(self) -> List[str]:
        """Commands, most recent first."""
        return list(reversed(self._entries))

    @property
    def current_index(self) -> int:
        return self._index

    def add(self, command: str) -> None:
        """Record a command.  Empty commands are ignored."""
        if not command:
            return
        if command in self._entries:
            self._entries.move_to_end(command)
        else:
            self._entries[command] = None
            while len(self._entries) > self._max:
                self._entries.popitem(last=False)
        self._index = -1

    def previous(self) -> Optional[str]:
        """Step back to an older command (stops at the oldest)."""
        if not self._entries:
            return None
        if self._index < len(self._entries) - 1:
            self._index += 1
        return self.entries[self._index]

    def next(self) -> str:
        """Step forward to a newer command; ``""`` past the newest."""
        if not self._entries or self._index <= 0:
            self._index = -1
            return ""
        self._index -= 1
        return self.entries[self._index]

    def reset_index(self) -> None:
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)
