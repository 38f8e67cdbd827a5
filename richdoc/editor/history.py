"""Bounded undo/redo history of document snapshots."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

from richdoc.model.elements import DocumentNode
from richdoc.model.selection import Selection


@dataclass(frozen=True)
class HistoryEntry:
    """A detached tree snapshot and the selection that went with it."""

    document: DocumentNode
    selection: Optional[Selection]


class UndoHistory:
    """Two stacks of snapshots; the oldest undo entries fall off past ``limit``."""

    def __init__(self, limit: int = 100) -> None:
        if limit < 1:
            raise ValueError("history limit must be positive")
        self._undo: Deque[HistoryEntry] = deque(maxlen=limit)
        self._redo: Deque[HistoryEntry] = deque(maxlen=limit)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def __len__(self) -> int:
        return len(self._undo)

    def record(self, entry: HistoryEntry) -> None:
        """Push the state preceding a new edit; any redo branch is dropped."""
        self._undo.append(entry)
        self._redo.clear()

    def undo(self, current: HistoryEntry) -> Optional[HistoryEntry]:
        if not self._undo:
            return None
        self._redo.append(current)
        return self._undo.pop()

    def redo(self, current: HistoryEntry) -> Optional[HistoryEntry]:
        if not self._redo:
            return None
        self._undo.append(current)
        return self._redo.pop()

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
