"""
Bounded snapshot history.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterator, List, Optional, TypeVar

H = TypeVar("H")

DEFAULT_CAPACITY = 12


@dataclass
class Snapshot(Generic[H]):
    image_handle: H
    captured_at: float = field(default_factory=time.time)


def _noop_release(handle: Any) -> None:
    return None


class SnapshotHistory(Generic[H]):
    """
    Order-preserving buffer of captured images, oldest first.

    Appending past capacity evicts the oldest entry and calls ``release`` on
    its handle before returning. Every entry that leaves the buffer is released
    exactly once.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, release: Optional[Callable[[H], None]] = None):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._release = release or _noop_release
        self._entries: List[Snapshot[H]] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Snapshot[H]]:
        return iter(list(self._entries))

    def __getitem__(self, index: int) -> Snapshot[H]:
        return self._entries[index]

    def handles(self) -> List[H]:
        return [entry.image_handle for entry in self._entries]

    def append(self, handle: H, captured_at: Optional[float] = None) -> Snapshot[H]:
        entry = Snapshot(handle, captured_at if captured_at is not None else time.time())
        self._entries.append(entry)
        while len(self._entries) > self.capacity:
            evicted = self._entries.pop(0)
            self._release_entry(evicted)
        return entry

    def remove(self, index: int) -> Snapshot[H]:
        """Remove and release the entry at index. Raises IndexError if out of range."""
        if not -len(self._entries) <= index < len(self._entries):
            raise IndexError(f"snapshot index {index} out of range")
        entry = self._entries.pop(index)
        self._release_entry(entry)
        return entry

    def clear(self) -> None:
        entries, self._entries = self._entries, []
        for entry in entries:
            self._release_entry(entry)

    def _release_entry(self, entry: Snapshot[H]) -> None:
        try:
            self._release(entry.image_handle)
        except Exception as e:
            logging.warning(f"Failed to release snapshot: {e}")
