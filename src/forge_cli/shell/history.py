"""Bounded, in-memory history of shell input lines.

Addressing works in both directions over the same buffer::

    history.get(0)    # newest entry
    history.get(1)    # the one before it
    history.get(-1)   # oldest entry
    history.get(-2)   # second oldest

History lives for one session only and is never written to disk.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import AsyncGenerator, Iterable, Optional

from prompt_toolkit.history import History

DEFAULT_CAPACITY = 1000
SEARCH_LIMIT = 10


class HistoryBuffer:
    """Ring buffer of input lines with consecutive-duplicate suppression.

    A lock guards every access so a completion worker may read while the
    session thread appends.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._entries: deque[str] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or DEFAULT_CAPACITY

    def append(self, line: str) -> bool:
        """Record *line* (trimmed). Returns ``False`` if it was empty or a repeat."""
        line = line.strip()
        if not line:
            return False
        with self._lock:
            if self._entries and self._entries[-1] == line:
                return False
            self._entries.append(line)
        return True

    def entries(self) -> list[str]:
        """All entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def get(self, index: int) -> Optional[str]:
        """Entry at *index*: ``0`` is the newest, ``-1`` the oldest. ``None`` if out of range."""
        with self._lock:
            size = len(self._entries)
            position = size - 1 - index if index >= 0 else -index - 1
            if 0 <= position < size:
                return self._entries[position]
            return None

    def search(self, text: str, limit: int = SEARCH_LIMIT) -> list[str]:
        """Up to *limit* entries containing *text*, newest first."""
        matches: list[str] = []
        with self._lock:
            for entry in reversed(self._entries):
                if text in entry:
                    matches.append(entry)
                    if len(matches) >= limit:
                        break
        return matches

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class BufferHistory(History):
    """Expose a :class:`HistoryBuffer` to prompt_toolkit for up-arrow recall.

    Every read goes to the buffer, so recall follows its capacity, duplicate
    suppression and ``history clear``. The session records lines itself;
    prompt_toolkit's own appends are ignored.
    """

    def __init__(self, buffer: HistoryBuffer) -> None:
        super().__init__()
        self._buffer = buffer

    def load_history_strings(self) -> Iterable[str]:
        # prompt_toolkit expects newest first.
        return list(reversed(self._buffer.entries()))

    async def load(self) -> AsyncGenerator[str, None]:
        for entry in self.load_history_strings():
            yield entry

    def get_strings(self) -> list[str]:
        return self._buffer.entries()

    def append_string(self, string: str) -> None:
        pass

    def store_string(self, string: str) -> None:
        pass
