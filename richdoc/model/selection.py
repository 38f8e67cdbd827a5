"""Cursor positions and selections inside a document tree."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

Path = Tuple[int, ...]


@dataclass(frozen=True, slots=True, order=True)
class Position:
    """A cursor location: index path to a textblock plus a character offset.

    Ordering follows document order because textblocks never nest.
    """

    path: Path
    offset: int = 0


@dataclass(frozen=True, slots=True)
class Selection:
    """Anchor/head pair; also used as the range argument of model operations."""

    anchor: Position
    head: Position

    @classmethod
    def caret(cls, position: Position) -> "Selection":
        return cls(position, position)

    @property
    def start(self) -> Position:
        return min(self.anchor, self.head)

    @property
    def end(self) -> Position:
        return max(self.anchor, self.head)

    @property
    def collapsed(self) -> bool:
        return self.anchor == self.head
