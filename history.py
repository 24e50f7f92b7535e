from __future__ import annotations

from typing import Iterator, List, Optional


class HistoryStack:
    """Per-tab ordered log of display URLs with a cursor.

    Pure data structure: ``push`` is the only way entries are added, and it
    branches (drops everything after the cursor) before appending. ``back`` and
    ``forward`` only move the cursor.
    """

    def __init__(self, initial_url: Optional[str] = None):
        self._entries: List[str] = []
        self._index = -1
        if initial_url is not None:
            self._entries.append(initial_url)
            self._index = 0

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> List[str]:
        return list(self._entries)

    @property
    def current(self) -> Optional[str]:
        if self._index < 0:
            return None
        return self._entries[self._index]

    @property
    def can_go_back(self) -> bool:
        return self._index > 0

    @property
    def can_go_forward(self) -> bool:
        return 0 <= self._index < len(self._entries) - 1

    def push(self, url: str) -> bool:
        """Record a non-replay navigation.

        Returns False when ``url`` is already the entry under the cursor.
        """
        if self.current == url:
            return False
        del self._entries[self._index + 1:]
        self._entries.append(url)
        self._index = len(self._entries) - 1
        return True

    def back(self) -> Optional[str]:
        """Move the cursor one step back and return the entry, or None at the start."""
        if not self.can_go_back:
            return None
        self._index -= 1
        return self._entries[self._index]

    def forward(self) -> Optional[str]:
        """Move the cursor one step forward and return the entry, or None at the tip."""
        if not self.can_go_forward:
            return None
        self._index += 1
        return self._entries[self._index]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __repr__(self) -> str:
        return f"HistoryStack(index={self._index}, entries={self._entries!r})"
