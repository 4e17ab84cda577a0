"""Bounded, newest-first log of sync activity."""

from collections import deque
from collections.abc import Iterable
from datetime import datetime
from typing import Optional

from ..utils import DEFAULT_LOG_CAPACITY, format_log_time


class SyncLog:
    """Ring buffer of timestamped messages, most recent first."""

    def __init__(
        self,
        entries: Optional[Iterable[str]] = None,
        capacity: int = DEFAULT_LOG_CAPACITY,
    ):
        self.capacity = capacity
        self._entries: deque[str] = deque(maxlen=capacity)
        # Existing entries are newest first; keep the newest ones
        for entry in list(entries or [])[:capacity]:
            self._entries.append(entry)

    def add(self, message: str, moment: Optional[datetime] = None) -> str:
        """Record a message and return the stored entry."""
        entry = f"[{format_log_time(moment)}] {message}"
        self._entries.appendleft(entry)
        return entry

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
