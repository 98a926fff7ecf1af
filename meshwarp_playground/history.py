"""Bounded linear undo/redo history over immutable snapshots."""
from __future__ import annotations

from typing import Generic, List, TypeVar

HISTORY_CAPACITY = 50

T = TypeVar("T")


class History(Generic[T]):
    """Snapshot list plus a cursor.

    ``push`` drops every snapshot after the cursor before appending, and the
    oldest snapshot is evicted once more than ``capacity`` are held. The list
    is never empty and the cursor always indexes into it.
    """

    def __init__(self, initial: T, capacity: int = HISTORY_CAPACITY) -> None:
        self._capacity = max(1, int(capacity))
        self._snapshots: List[T] = [initial]
        self._index = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def index(self) -> int:
        return self._index

    def __len__(self) -> int:
        return len(self._snapshots)

    def current(self) -> T:
        return self._snapshots[self._index]

    def push(self, state: T) -> None:
        del self._snapshots[self._index + 1 :]
        self._snapshots.append(state)
        overflow = len(self._snapshots) - self._capacity
        if overflow > 0:
            del self._snapshots[:overflow]
        self._index = len(self._snapshots) - 1

    def undo(self) -> None:
        self._index = max(0, self._index - 1)

    def redo(self) -> None:
        self._index = min(len(self._snapshots) - 1, self._index + 1)

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._snapshots) - 1

    def snapshots(self) -> List[T]:
        return list(self._snapshots)
